"""Lifecycle façade binding host events to the caching components."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import structlog

from shellsync.core.config import CacheNames
from shellsync.core.errors import LifecycleError, ShellSyncError, UnknownCommandError
from shellsync.core.fetcher import Fetcher
from shellsync.core.offline import BulkFetcher, DownloadReport
from shellsync.core.router import RequestRouter
from shellsync.core.storage import CacheStorage
from shellsync.core.sync import ReconcileReport, SyncEngine
from shellsync.core.types import (
    CachedResponse,
    Release,
    ResourceRequest,
    Route,
    RouteDecision,
)

logger = structlog.get_logger()


class WorkerState(StrEnum):
    """Lifecycle states of a worker version."""
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class Command(StrEnum):
    """Commands accepted on the message channel."""
    SKIP_WAITING = "skip-waiting"
    DOWNLOAD_OFFLINE = "download-offline"


_COMMAND_ALIASES = {
    "skipWaiting": Command.SKIP_WAITING,
    "downloadOffline": Command.DOWNLOAD_OFFLINE,
}


class ServiceWorker:
    """One release's worker: install, activate, fetch and message hooks.

    The host serializes install and activate; fetch and message calls may
    run concurrently once the worker is activated.
    """

    def __init__(
        self,
        release: Release,
        storage: CacheStorage,
        fetcher: Fetcher,
        names: CacheNames | None = None,
        state: WorkerState = WorkerState.PARSED,
    ):
        self.release = release
        self.fetcher = fetcher
        self.names = names or CacheNames()
        self.state = state
        self.skip_waiting = False
        self.controlling = state is WorkerState.ACTIVATED

        self.engine = SyncEngine(storage, fetcher, release.manifest, release.core, self.names)
        self.router = RequestRouter(storage, fetcher, release.manifest, self.names)
        self.bulk_fetcher = BulkFetcher(storage, fetcher, release.manifest, self.names)

    def install(self) -> list[str]:
        """Stage the shell resources.

        Returns:
            Staged keys

        Raises:
            StageFailure: If staging failed; the worker becomes redundant
        """
        if self.state is not WorkerState.PARSED:
            raise LifecycleError(f"Cannot install from state {self.state}")

        self.state = WorkerState.INSTALLING
        # Activate as soon as installed rather than waiting for old clients to close
        self.skip_waiting = True
        try:
            staged = self.engine.stage()
        except ShellSyncError:
            self.state = WorkerState.REDUNDANT
            raise

        self.state = WorkerState.INSTALLED
        logger.info("worker_installed", staged=len(staged))
        return staged

    def activate(self) -> ReconcileReport:
        """Reconcile the caches against this release's manifest.

        Raises:
            ReconciliationFailure: If reconciliation failed; caches are reset
        """
        if self.state is not WorkerState.INSTALLED:
            raise LifecycleError(f"Cannot activate from state {self.state}")

        self.state = WorkerState.ACTIVATING
        try:
            report = self.engine.reconcile()
        except ShellSyncError:
            self.state = WorkerState.REDUNDANT
            raise

        self.state = WorkerState.ACTIVATED
        self.controlling = True
        logger.info("worker_activated")
        return report

    def classify(self, request: ResourceRequest) -> Route:
        """Route a request; nothing is intercepted before activation."""
        route = self.router.classify(request)
        if self.state is not WorkerState.ACTIVATED:
            return Route(RouteDecision.PASS_THROUGH, route.key)
        return route

    def handle_fetch(self, request: ResourceRequest) -> CachedResponse:
        """Serve a request; before activation everything goes to the network."""
        if self.state is not WorkerState.ACTIVATED:
            return self.fetcher.fetch_url(request.url, method=request.method)
        return self.router.handle(request)

    def handle_message(self, command: str) -> Any:
        """Handle a message-channel command.

        Returns:
            ReconcileReport for skip-waiting when it triggered activation,
            DownloadReport for download-offline, otherwise None

        Raises:
            UnknownCommandError: For unrecognized commands
        """
        resolved = _COMMAND_ALIASES.get(command)
        if resolved is None:
            try:
                resolved = Command(command)
            except ValueError:
                raise UnknownCommandError(command) from None

        logger.debug("worker_message", command=resolved.value)
        if resolved is Command.SKIP_WAITING:
            return self._skip_waiting()
        return self.download_offline()

    def _skip_waiting(self) -> ReconcileReport | None:
        self.skip_waiting = True
        if self.state is WorkerState.INSTALLED:
            return self.activate()
        return None

    def download_offline(self) -> DownloadReport:
        """Cache every manifest resource that is not cached yet."""
        if self.state is not WorkerState.ACTIVATED:
            raise LifecycleError(f"Cannot download for offline use in state {self.state}")
        return self.bulk_fetcher.download_all()
