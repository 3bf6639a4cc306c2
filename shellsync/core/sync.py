"""Manifest-driven cache synchronization.

Install stages the shell resources into a temporary cache. Activation
reconciles the durable content cache against the new manifest:

1. Without a saved manifest the content cache is discarded entirely.
2. Otherwise every cached key is evicted unless the new manifest lists it
   with the same fingerprint as the saved manifest.
3. Staged shell resources are copied in, replacing retained entries.
4. The new manifest is saved and the staging cache discarded.

Any error during reconciliation leaves the caches in an unknown state, so
all of them are deleted and the next load rebuilds from scratch.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from shellsync.core.config import CacheNames
from shellsync.core.errors import FetchFailure, ReconciliationFailure, StageFailure
from shellsync.core.fetcher import Fetcher
from shellsync.core.manifest import ManifestStore
from shellsync.core.storage import Cache, CacheStorage
from shellsync.core.types import CachedResponse, ResourceManifest

logger = structlog.get_logger()


@dataclass
class ReconcileReport:
    """Outcome of a reconciliation pass.

    Attributes:
        first_install: True if no manifest had been saved before
        retained: Keys kept from the previous version
        evicted: Keys removed because they changed or left the manifest
        staged: Shell keys copied from the staging cache
    """

    first_install: bool = False
    retained: list[str] = field(default_factory=list)
    evicted: list[str] = field(default_factory=list)
    staged: list[str] = field(default_factory=list)


class SyncEngine:
    """Stages shell resources and reconciles the content cache.

    Args:
        storage: Cache storage holding all containers
        fetcher: Network access to the origin
        manifest: Manifest of the version being installed
        core: Shell resource keys, in fetch order
        names: Container names
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        manifest: ResourceManifest,
        core: Sequence[str] = (),
        names: CacheNames | None = None,
    ):
        self.storage = storage
        self.fetcher = fetcher
        self.manifest = manifest
        self.core = tuple(core)
        self.names = names or CacheNames()
        self.manifest_store = ManifestStore(storage, self.names.manifest)

    def stage(self, core: Sequence[str] | None = None) -> list[str]:
        """Fetch the shell resources into the staging cache.

        Every resource is fetched, bypassing HTTP caches, before any of them
        is stored, so a failed stage never leaves a partial staging cache.
        A successful stage replaces whatever an earlier stage left behind.

        Args:
            core: Shell keys, defaults to the engine's core set

        Returns:
            Staged keys

        Raises:
            StageFailure: If any shell resource could not be fetched
        """
        keys = tuple(core) if core is not None else self.core

        fetched: list[tuple[str, CachedResponse]] = []
        for key in keys:
            try:
                fetched.append((key, self.fetcher.fetch_ok(key, reload=True)))
            except FetchFailure as e:
                logger.error("stage_failed", key=key, error=str(e))
                raise StageFailure(f"Could not stage shell resource {key}: {e}", key=key) from e

        # Entries left by an install that never activated must not leak into reconcile
        self.storage.delete(self.names.staging)
        staging = self.storage.open(self.names.staging)
        for key, response in fetched:
            staging.put(key, response)

        logger.info("stage_complete", resources=len(fetched))
        return [key for key, _ in fetched]

    def reconcile(self, manifest: ResourceManifest | None = None) -> ReconcileReport:
        """Align the content cache with a manifest.

        Args:
            manifest: New manifest, defaults to the engine's manifest

        Returns:
            Report of retained, evicted and staged keys

        Raises:
            ReconciliationFailure: After any error, once all caches are deleted
        """
        new_manifest = manifest if manifest is not None else self.manifest
        try:
            report = self._reconcile(new_manifest)
        except Exception as e:
            logger.error("reconcile_failed", error=str(e))
            self.reset()
            raise ReconciliationFailure(f"Failed to reconcile caches: {e}") from e

        logger.info(
            "reconcile_complete",
            first_install=report.first_install,
            retained=len(report.retained),
            evicted=len(report.evicted),
            staged=len(report.staged),
        )
        return report

    def _reconcile(self, new_manifest: ResourceManifest) -> ReconcileReport:
        report = ReconcileReport()
        staging = self.storage.open(self.names.staging)
        old_manifest = self.manifest_store.load()

        if old_manifest is None:
            # Entries from an unknown earlier version cannot be trusted
            report.first_install = True
            self.storage.delete(self.names.content)
            content = self.storage.open(self.names.content)
        else:
            content = self.storage.open(self.names.content)
            for key in content.keys():
                fingerprint = new_manifest.fingerprint(key)
                if fingerprint is None or fingerprint != old_manifest.fingerprint(key):
                    content.delete(key)
                    report.evicted.append(key)
                else:
                    report.retained.append(key)

        report.staged = self._copy_all(staging, content)
        self.manifest_store.save(new_manifest)
        self.storage.delete(self.names.staging)
        return report

    def _copy_all(self, source: Cache, target: Cache) -> list[str]:
        """Copy every entry of one container into another."""
        copied: list[str] = []
        for key in source.keys():
            response = source.get(key)
            if response is None:
                continue
            target.put(key, response)
            copied.append(key)
        return copied

    def reset(self) -> None:
        """Delete the content, staging and manifest containers."""
        self.storage.delete(self.names.content)
        self.storage.delete(self.names.staging)
        self.storage.delete(self.names.manifest)
        logger.warning("caches_reset")
