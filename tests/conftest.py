"""Pytest configuration and shared fixtures for shellsync tests."""

import json
import tempfile
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest

from shellsync.core.config import CacheNames, NetworkConfig
from shellsync.core.fetcher import Fetcher
from shellsync.core.storage import MemoryCacheStorage
from shellsync.core.types import Release, ResourceManifest

ORIGIN = "https://app.example"


class FakeOrigin:
    """In-process application origin served through httpx.MockTransport.

    Attributes:
        files: Resource key to body served with HTTP 200
        statuses: Resource key to a forced status code
        offline: When True every request fails with a connection error
        requests: Every request received, in order
    """

    def __init__(self, files: dict[str, bytes] | None = None):
        self.files: dict[str, bytes] = dict(files or {})
        self.statuses: dict[str, int] = {}
        self.offline = False
        self.requests: list[httpx.Request] = []

    @staticmethod
    def key_of(request: httpx.Request) -> str:
        path = request.url.path
        return "/" if path == "/" else path.lstrip("/")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("network unreachable", request=request)

        key = self.key_of(request)
        if key in self.statuses:
            return httpx.Response(self.statuses[key], content=b"error")
        if key not in self.files:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(
            200,
            content=self.files[key],
            headers={"Content-Type": "application/octet-stream"},
        )

    def requested_keys(self) -> list[str]:
        return [self.key_of(r) for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def origin() -> FakeOrigin:
    """Origin serving a small application."""
    return FakeOrigin({
        "/": b"<html>root v1</html>",
        "index.html": b"<html>root v1</html>",
        "main.js": b"console.log('v1');",
        "style.css": b"body {}",
        "assets/logo.png": b"\x89PNG logo",
    })


@pytest.fixture
def fetcher(origin: FakeOrigin) -> Generator[Fetcher, None, None]:
    """Fetcher wired to the fake origin."""
    with Fetcher(NetworkConfig(origin=ORIGIN), transport=origin.transport()) as f:
        yield f


@pytest.fixture
def storage() -> MemoryCacheStorage:
    """Empty in-memory cache storage."""
    return MemoryCacheStorage()


@pytest.fixture
def names() -> CacheNames:
    """Default container names."""
    return CacheNames()


@pytest.fixture
def sample_manifest() -> ResourceManifest:
    """Manifest matching the fake origin's files."""
    return ResourceManifest(resources={
        "/": "r1",
        "index.html": "r1",
        "main.js": "m1",
        "style.css": "s1",
        "assets/logo.png": "l1",
    })


@pytest.fixture
def sample_release(sample_manifest: ResourceManifest) -> Release:
    """Release with index.html and main.js as its shell."""
    return Release(manifest=sample_manifest, core=("main.js", "index.html"))


@pytest.fixture
def release_file(temp_dir: Path, sample_release: Release) -> Path:
    """Release document written to disk."""
    path = temp_dir / "release.json"
    path.write_text(json.dumps({
        "resources": sample_release.manifest.resources,
        "core": list(sample_release.core),
    }))
    return path


# Pytest configuration
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    """Modify test collection to add markers automatically."""
    for item in items:
        # Add unit marker to all tests by default
        if not any(marker.name in ['integration', 'slow'] for marker in item.iter_markers()):
            item.add_marker(pytest.mark.unit)
