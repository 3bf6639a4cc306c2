"""shellsync - manifest-driven cache synchronization.

This package keeps a durable resource cache aligned with the manifest of
the deployed application version, the way a web application's service
worker does:

Key modules:
- core: Storage, synchronization, routing and the lifecycle façade
- commands: CLI command implementations
"""

__version__ = "0.1.0"
__author__ = "shellsync contributors"

# Re-export commonly used types
from shellsync.core.types import (
    CachedResponse,
    Release,
    ResourceManifest,
    ResourceRequest,
    RouteDecision,
)
from shellsync.core.worker import ServiceWorker

__all__ = [
    "__version__",
    "__author__",
    "CachedResponse",
    "Release",
    "ResourceManifest",
    "ResourceRequest",
    "RouteDecision",
    "ServiceWorker",
]
