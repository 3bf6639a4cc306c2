"""Tests for fetcher.py module."""

from unittest.mock import patch

import httpx
import pytest

from shellsync.core.config import NetworkConfig
from shellsync.core.errors import FetchFailure
from shellsync.core.fetcher import Fetcher


class TestFetcher:
    """Test Fetcher class."""

    def test_init_default_values(self):
        """Test initialization with default values."""
        fetcher = Fetcher()

        assert isinstance(fetcher.config, NetworkConfig)
        assert fetcher.origin == "http://localhost:8080"
        assert fetcher._client is None

    def test_client_created_lazily(self):
        """Test the HTTP client is created once on first use."""
        fetcher = Fetcher(NetworkConfig(timeout=5.0))

        client = fetcher.client
        assert isinstance(client, httpx.Client)
        assert fetcher.client is client
        assert client.timeout.read == 5.0
        fetcher.close()
        assert fetcher._client is None

    def test_fetch_success(self, fetcher, origin):
        """Test fetching a resource by key."""
        response = fetcher.fetch("main.js")

        assert response.ok
        assert response.status == 200
        assert response.body == b"console.log('v1');"
        assert response.url == "https://app.example/main.js"
        assert response.headers["content-type"] == "application/octet-stream"
        assert "content-length" not in response.headers
        assert origin.requested_keys() == ["main.js"]

    def test_fetch_root(self, fetcher, origin):
        """Test the root key maps to the origin root."""
        response = fetcher.fetch("/")

        assert response.body == b"<html>root v1</html>"
        assert str(origin.requests[0].url) == "https://app.example/"

    def test_fetch_non_success_returned(self, fetcher):
        """Test non-success statuses are returned by fetch()."""
        response = fetcher.fetch("missing.js")

        assert response.status == 404
        assert not response.ok

    def test_fetch_ok_raises_on_status(self, fetcher, origin):
        """Test fetch_ok() rejects non-success statuses."""
        origin.statuses["main.js"] = 503

        with pytest.raises(FetchFailure) as exc_info:
            fetcher.fetch_ok("main.js")

        assert exc_info.value.key == "main.js"
        assert exc_info.value.status == 503

    def test_transport_error(self, fetcher, origin):
        """Test connection errors become FetchFailure."""
        origin.offline = True

        with pytest.raises(FetchFailure) as exc_info:
            fetcher.fetch("main.js")

        assert exc_info.value.key == "main.js"
        assert exc_info.value.status is None
        assert exc_info.value.url == "https://app.example/main.js"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_reload_bypasses_http_caches(self, fetcher, origin):
        """Test reload requests ask intermediaries to revalidate."""
        fetcher.fetch("main.js", reload=True)
        fetcher.fetch("style.css")

        assert origin.requests[0].headers["cache-control"] == "no-cache"
        assert origin.requests[0].headers["pragma"] == "no-cache"
        assert "cache-control" not in origin.requests[1].headers

    def test_fetch_url_method(self, fetcher, origin):
        """Test arbitrary methods are forwarded."""
        response = fetcher.fetch_url("https://app.example/main.js", method="HEAD")

        assert response.status == 200
        assert origin.requests[0].method == "HEAD"

    @patch("httpx.Client.request")
    def test_timeout_becomes_fetch_failure(self, mock_request):
        """Test timeouts are reported as fetch failures."""
        mock_request.side_effect = httpx.ReadTimeout("timed out")

        with Fetcher(NetworkConfig(origin="https://app.example", timeout=1.0)) as fetcher:
            with pytest.raises(FetchFailure, match="timed out"):
                fetcher.fetch("main.js")

    def test_context_manager_closes(self, origin):
        """Test the client is closed on exit."""
        with Fetcher(NetworkConfig(origin="https://app.example"), transport=origin.transport()) as fetcher:
            fetcher.fetch("main.js")
            client = fetcher._client

        assert client is not None
        assert client.is_closed
        assert fetcher._client is None
