"""Request routing between the content cache and the network."""

from __future__ import annotations

import structlog

from shellsync.core.config import CacheNames
from shellsync.core.errors import FetchFailure
from shellsync.core.fetcher import Fetcher
from shellsync.core.storage import CacheStorage
from shellsync.core.types import (
    ROOT_KEY,
    CachedResponse,
    ResourceManifest,
    ResourceRequest,
    Route,
    RouteDecision,
)
from shellsync.core.utils import resource_key

logger = structlog.get_logger()

INTERCEPTED_METHODS = frozenset({"GET"})


class RequestRouter:
    """Serves GET requests for manifest resources.

    The entry point is fetched online-first so new deployments are picked
    up as soon as the network allows. Every other managed resource is
    served cache-first and filled lazily on a miss. Requests for anything
    outside the manifest go straight to the network.
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        manifest: ResourceManifest,
        names: CacheNames | None = None,
    ):
        self.storage = storage
        self.fetcher = fetcher
        self.manifest = manifest
        self.names = names or CacheNames()

    def classify(self, request: ResourceRequest) -> Route:
        """Decide how a request is served."""
        if request.method.upper() not in INTERCEPTED_METHODS:
            return Route(RouteDecision.PASS_THROUGH)

        key = resource_key(request.url, self.fetcher.origin)
        if key is None or key not in self.manifest:
            return Route(RouteDecision.PASS_THROUGH, key)
        if key == ROOT_KEY:
            return Route(RouteDecision.INTERCEPT_ONLINE_FIRST, key)
        return Route(RouteDecision.INTERCEPT_CACHE, key)

    def handle(self, request: ResourceRequest) -> CachedResponse:
        """Serve a request according to its classification.

        Raises:
            FetchFailure: If the network is needed and fails with no fallback
        """
        route = self.classify(request)
        if route.decision is RouteDecision.PASS_THROUGH or route.key is None:
            return self.fetcher.fetch_url(request.url, method=request.method)
        if route.decision is RouteDecision.INTERCEPT_ONLINE_FIRST:
            return self.online_first(route.key)
        return self.cache_first(route.key)

    def cache_first(self, key: str) -> CachedResponse:
        """Return the cached entry, fetching and storing it on a miss.

        Only success responses are stored. Fetch errors propagate.
        """
        content = self.storage.open(self.names.content)
        cached = content.get(key)
        if cached is not None:
            logger.debug("cache_hit", key=key)
            return cached

        response = self.fetcher.fetch(key)
        if response.ok:
            content.put(key, response)
            logger.debug("cache_store", key=key, size=len(response.body))
        return response

    def online_first(self, key: str) -> CachedResponse:
        """Fetch from the network, falling back to the cached entry.

        Raises:
            FetchFailure: The network failure if nothing is cached
        """
        content = self.storage.open(self.names.content)
        try:
            response = self.fetcher.fetch_ok(key)
        except FetchFailure as e:
            cached = content.get(key)
            if cached is None:
                raise
            logger.info("online_first_fallback", key=key, error=str(e))
            return cached

        content.put(key, response)
        logger.debug("cache_refresh", key=key, size=len(response.body))
        return response
