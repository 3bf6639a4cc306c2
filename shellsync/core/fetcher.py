"""Network access to the application origin."""

from __future__ import annotations

import httpx
import structlog

from shellsync.core.config import NetworkConfig
from shellsync.core.errors import FetchFailure
from shellsync.core.types import CachedResponse
from shellsync.core.utils import resource_url

logger = structlog.get_logger()

# Describe the transfer rather than the payload; the body is stored decoded
_HOP_HEADERS = {"content-encoding", "content-length", "transfer-encoding", "connection"}

_RELOAD_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class Fetcher:
    """HTTP client for resources served by the application origin.

    Transport errors surface as FetchFailure. Responses with a non-success
    status are returned as-is by fetch(); fetch_ok() turns them into
    FetchFailure as well.
    """

    def __init__(
        self,
        config: NetworkConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize fetcher.

        Args:
            config: Optional network configuration
            transport: Optional httpx transport, used instead of the network
        """
        self.config = config or NetworkConfig()
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def origin(self) -> str:
        return self.config.origin

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def fetch_url(
        self,
        url: str,
        method: str = "GET",
        reload: bool = False,
        key: str | None = None,
    ) -> CachedResponse:
        """Fetch a URL.

        Args:
            url: Absolute URL
            method: HTTP method
            reload: Bypass intermediate HTTP caches
            key: Resource key, for error reporting

        Returns:
            Response with any status

        Raises:
            FetchFailure: If the request could not be completed
        """
        headers = _RELOAD_HEADERS if reload else None
        try:
            response = self.client.request(method, url, headers=headers)
        except httpx.HTTPError as e:
            logger.debug("fetch_failed", url=url, error=str(e))
            raise FetchFailure(f"Failed to fetch {url}: {e}", key=key, url=url) from e

        logger.debug("fetch_complete", url=url, status=response.status_code, size=len(response.content))
        return CachedResponse(
            status=response.status_code,
            body=response.content,
            headers={
                name.lower(): value
                for name, value in response.headers.items()
                if name.lower() not in _HOP_HEADERS
            },
            url=str(response.url),
        )

    def fetch(self, key: str, reload: bool = False) -> CachedResponse:
        """Fetch a resource by key.

        Raises:
            FetchFailure: If the request could not be completed
        """
        return self.fetch_url(resource_url(key, self.origin), reload=reload, key=key)

    def fetch_ok(self, key: str, reload: bool = False) -> CachedResponse:
        """Fetch a resource by key, requiring a success status.

        Raises:
            FetchFailure: On transport errors or non-success status
        """
        response = self.fetch(key, reload=reload)
        if not response.ok:
            raise FetchFailure(
                f"Fetching {key} returned HTTP {response.status}",
                key=key,
                url=response.url,
                status=response.status,
            )
        return response

    def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> Fetcher:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
