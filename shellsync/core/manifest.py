"""Persistence of the last applied resource manifest."""

from __future__ import annotations

import structlog

from shellsync.core.storage import CacheStorage
from shellsync.core.types import CachedResponse, ResourceManifest

logger = structlog.get_logger()


class ManifestStore:
    """Stores the manifest of the last successful reconciliation.

    The manifest is kept as a single JSON record in its own container, so
    discarding that container is enough to force a cold rebuild.
    """

    RECORD_KEY = "manifest"

    def __init__(self, storage: CacheStorage, cache_name: str = "app-manifest"):
        self.storage = storage
        self.cache_name = cache_name

    def load(self) -> ResourceManifest | None:
        """Load the previously saved manifest.

        Returns:
            Saved manifest, or None if no reconciliation has completed yet

        Raises:
            ValueError: If the stored record cannot be decoded
        """
        if not self.storage.has(self.cache_name):
            return None

        record = self.storage.open(self.cache_name).get(self.RECORD_KEY)
        if record is None:
            return None
        return ResourceManifest.from_json(record.body)

    def save(self, manifest: ResourceManifest) -> None:
        """Overwrite the saved manifest."""
        record = CachedResponse(
            status=200,
            body=manifest.to_json().encode("utf-8"),
            headers={"content-type": "application/json"},
        )
        self.storage.open(self.cache_name).put(self.RECORD_KEY, record)
        logger.debug("manifest_saved", resources=len(manifest))

    def clear(self) -> None:
        """Discard the saved manifest."""
        self.storage.delete(self.cache_name)
