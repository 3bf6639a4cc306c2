"""Bulk download of every manifest resource for offline use."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

import structlog

from shellsync.core.config import CacheNames
from shellsync.core.errors import FetchFailure
from shellsync.core.fetcher import Fetcher
from shellsync.core.storage import CacheStorage
from shellsync.core.types import ResourceManifest

logger = structlog.get_logger()


@dataclass
class DownloadReport:
    """Result of an offline download.

    Attributes:
        fetched: Keys fetched and stored by this call
        skipped: Number of manifest keys that were already cached
        total_bytes: Bytes stored by this call
    """

    fetched: list[str] = field(default_factory=list)
    skipped: int = 0
    total_bytes: int = 0


class BulkFetcher:
    """Fills the content cache with every manifest resource not yet cached."""

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        manifest: ResourceManifest,
        names: CacheNames | None = None,
        max_workers: int | None = None,
    ):
        self.storage = storage
        self.fetcher = fetcher
        self.manifest = manifest
        self.names = names or CacheNames()
        self.max_workers = max_workers or fetcher.config.max_workers

    def missing_keys(self) -> list[str]:
        """List manifest keys with no entry in the content cache."""
        cached = set(self.storage.open(self.names.content).keys())
        return [key for key in self.manifest.keys() if key not in cached]

    def download_all(self) -> DownloadReport:
        """Fetch and store every missing manifest resource.

        Successful downloads are stored as they complete. Failures are
        collected and reported once all other downloads have finished.

        Returns:
            Report of fetched keys

        Raises:
            FetchFailure: If any resource failed; earlier successes are kept
        """
        missing = self.missing_keys()
        report = DownloadReport(skipped=len(self.manifest) - len(missing))
        if not missing:
            logger.info("offline_up_to_date", resources=len(self.manifest))
            return report

        content = self.storage.open(self.names.content)
        failures: dict[str, FetchFailure] = {}

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(missing))) as executor:
            futures = {executor.submit(self.fetcher.fetch_ok, key): key for key in missing}
            for future in as_completed(futures):
                key = futures[future]
                try:
                    response = future.result()
                except FetchFailure as e:
                    failures[key] = e
                    logger.warning("offline_fetch_failed", key=key, error=str(e))
                    continue
                content.put(key, response)
                report.fetched.append(key)
                report.total_bytes += len(response.body)

        logger.info(
            "offline_download_complete",
            fetched=len(report.fetched),
            failed=len(failures),
            skipped=report.skipped,
        )
        if failures:
            failed_keys = sorted(failures)
            raise FetchFailure(
                f"Failed to download {len(failed_keys)} resource(s): {', '.join(failed_keys)}",
                key=failed_keys[0],
            )
        return report
