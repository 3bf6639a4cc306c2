"""Core functionality for shellsync.

This module provides the caching subsystem:
- Configuration management
- Type definitions and errors
- Cache storage backends and manifest persistence
- Synchronization engine, request router and bulk fetcher
- Worker lifecycle façade
"""

from shellsync.core.errors import (
    FetchFailure,
    LifecycleError,
    ReconciliationFailure,
    ShellSyncError,
    StageFailure,
    UnknownCommandError,
)
from shellsync.core.manifest import ManifestStore
from shellsync.core.offline import BulkFetcher, DownloadReport
from shellsync.core.router import RequestRouter
from shellsync.core.storage import (
    Cache,
    CacheStorage,
    DiskCacheStorage,
    MemoryCacheStorage,
)
from shellsync.core.sync import ReconcileReport, SyncEngine
from shellsync.core.types import (
    ROOT_KEY,
    CachedResponse,
    Release,
    ResourceManifest,
    ResourceRequest,
    Route,
    RouteDecision,
)

__all__ = [
    # Types
    "ROOT_KEY",
    "CachedResponse",
    "Release",
    "ResourceManifest",
    "ResourceRequest",
    "Route",
    "RouteDecision",
    # Errors
    "ShellSyncError",
    "FetchFailure",
    "StageFailure",
    "ReconciliationFailure",
    "LifecycleError",
    "UnknownCommandError",
    # Storage
    "Cache",
    "CacheStorage",
    "MemoryCacheStorage",
    "DiskCacheStorage",
    "ManifestStore",
    # Components
    "SyncEngine",
    "ReconcileReport",
    "RequestRouter",
    "BulkFetcher",
    "DownloadReport",
]
