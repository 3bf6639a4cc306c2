"""CLI command implementations for shellsync.

This module contains all command-line interface implementations:
- install: Stage a release's shell resources
- activate: Reconcile the content cache with the release manifest
- message: Send skip-waiting or download-offline to the worker
- get: Serve a single resource through the router
- status: Compare cache contents with the manifest
"""

from shellsync.commands.lifecycle import activate, install, message
from shellsync.commands.query import get, status

__all__ = ["activate", "get", "install", "message", "status"]
