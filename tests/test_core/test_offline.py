"""Tests for shellsync.core.offline module."""

import pytest

from shellsync.core.errors import FetchFailure
from shellsync.core.offline import BulkFetcher, DownloadReport
from shellsync.core.types import CachedResponse


@pytest.fixture
def bulk(storage, fetcher, sample_manifest) -> BulkFetcher:
    return BulkFetcher(storage, fetcher, sample_manifest, max_workers=3)


class TestBulkFetcher:
    """Test BulkFetcher class."""

    def test_defaults_from_config(self, storage, fetcher, sample_manifest):
        """Test worker count comes from the network config."""
        assert BulkFetcher(storage, fetcher, sample_manifest).max_workers == 6

    def test_missing_keys(self, bulk, storage):
        """Test only uncached manifest keys are missing."""
        storage.open("app-cache").put("main.js", CachedResponse(200, b"x"))

        assert sorted(bulk.missing_keys()) == ["/", "assets/logo.png", "index.html", "style.css"]

    def test_download_all(self, bulk, storage, origin):
        """Test every missing key is fetched exactly once."""
        storage.open("app-cache").put("main.js", CachedResponse(200, b"cached"))

        report = bulk.download_all()

        assert sorted(report.fetched) == ["/", "assets/logo.png", "index.html", "style.css"]
        assert report.skipped == 1
        assert report.total_bytes == sum(
            len(origin.files[k]) for k in ["/", "assets/logo.png", "index.html", "style.css"]
        )
        assert sorted(origin.requested_keys()) == sorted(report.fetched)
        assert storage.open("app-cache").get("main.js").body == b"cached"
        assert sorted(storage.open("app-cache").keys()) == sorted(bulk.manifest.keys())

    def test_idempotent(self, bulk, origin):
        """Test a second call fetches nothing."""
        bulk.download_all()
        requests_after_first = len(origin.requests)

        report = bulk.download_all()

        assert report == DownloadReport(skipped=len(bulk.manifest))
        assert len(origin.requests) == requests_after_first

    def test_failures_reported_after_successes(self, bulk, storage, origin):
        """Test failed keys raise once the rest are stored."""
        origin.statuses["style.css"] = 404
        origin.statuses["index.html"] = 500

        with pytest.raises(FetchFailure, match="2 resource") as exc_info:
            bulk.download_all()

        assert exc_info.value.key == "index.html"
        cached = sorted(storage.open("app-cache").keys())
        assert cached == ["/", "assets/logo.png", "main.js"]

    def test_retry_after_failure(self, bulk, storage, origin):
        """Test a later call only fetches what is still missing."""
        origin.statuses["style.css"] = 503
        with pytest.raises(FetchFailure):
            bulk.download_all()

        del origin.statuses["style.css"]
        origin.requests.clear()
        report = bulk.download_all()

        assert report.fetched == ["style.css"]
        assert origin.requested_keys() == ["style.css"]
        assert sorted(storage.open("app-cache").keys()) == sorted(bulk.manifest.keys())
