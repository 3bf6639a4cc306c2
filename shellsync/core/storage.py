"""Named cache containers.

A storage holds any number of named containers; each container maps a
resource key to a stored response. Two backends are provided: an in-memory
one for embedding and tests, and a disk-backed one whose entries survive
process restarts.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import structlog

from shellsync.core.types import CachedResponse
from shellsync.core.utils import key_digest

logger = structlog.get_logger()


class Cache(ABC):
    """A single named cache container."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def get(self, key: str) -> CachedResponse | None:
        """Get the stored response for a key.

        Args:
            key: Resource key

        Returns:
            Stored response or None if not cached
        """
        ...

    @abstractmethod
    def put(self, key: str, response: CachedResponse) -> None:
        """Store a response, replacing any existing entry for the key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete an entry.

        Returns:
            True if an entry was removed
        """
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """List the keys of all stored entries."""
        ...

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None


class CacheStorage(ABC):
    """Factory and registry of named containers."""

    @abstractmethod
    def open(self, name: str) -> Cache:
        """Open a container, creating it if it does not exist."""
        ...

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Delete a container and all its entries.

        Returns:
            True if the container existed
        """
        ...

    @abstractmethod
    def has(self, name: str) -> bool:
        """Check whether a container exists."""
        ...


class MemoryCache(Cache):
    """Container backed by a dict."""

    def __init__(self, name: str, entries: dict[str, CachedResponse]):
        super().__init__(name)
        self._entries = entries

    def get(self, key: str) -> CachedResponse | None:
        response = self._entries.get(key)
        return response.copy() if response is not None else None

    def put(self, key: str, response: CachedResponse) -> None:
        self._entries[key] = response.copy()

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._entries)


class MemoryCacheStorage(CacheStorage):
    """In-process storage; contents are lost when the process exits."""

    def __init__(self) -> None:
        self._containers: dict[str, dict[str, CachedResponse]] = {}

    def open(self, name: str) -> MemoryCache:
        entries = self._containers.setdefault(name, {})
        return MemoryCache(name, entries)

    def delete(self, name: str) -> bool:
        return self._containers.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._containers


class DiskCache(Cache):
    """Container stored as a directory of entry files.

    Layout:
    {base_dir}/{name}/
    └── {digest[:2]}/{digest[2:4]}/
        ├── {digest}.body   # Response body
        └── {digest}.json   # Key, status, headers, URL
    """

    def __init__(self, name: str, directory: Path):
        super().__init__(name)
        self.directory = directory

    def _entry_paths(self, key: str) -> tuple[Path, Path]:
        """Get body and metadata paths for a key."""
        digest = key_digest(key)
        parent = self.directory / digest[:2] / digest[2:4]
        return parent / f"{digest}.body", parent / f"{digest}.json"

    def _write_atomic(self, path: Path, data: bytes) -> None:
        """Write a file via a unique temp file and atomic replace."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(temp_name, path)
        except OSError:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

    def get(self, key: str) -> CachedResponse | None:
        body_path, meta_path = self._entry_paths(key)
        try:
            with open(meta_path, encoding="utf-8") as f:
                meta: dict[str, Any] = json.load(f)
            with open(body_path, "rb") as f:
                body = f.read()
        except FileNotFoundError:
            return None

        return CachedResponse(
            status=int(meta["status"]),
            body=body,
            headers=dict(meta.get("headers", {})),
            url=meta.get("url", ""),
        )

    def put(self, key: str, response: CachedResponse) -> None:
        body_path, meta_path = self._entry_paths(key)
        meta = {
            "key": key,
            "status": response.status,
            "headers": response.headers,
            "url": response.url,
        }

        # The metadata file marks the entry as present, so it is written last
        self._write_atomic(body_path, response.body)
        self._write_atomic(meta_path, json.dumps(meta).encode("utf-8"))
        logger.debug("disk_cache_stored", cache=self.name, key=key, size=len(response.body))

    def delete(self, key: str) -> bool:
        body_path, meta_path = self._entry_paths(key)
        existed = meta_path.exists()
        meta_path.unlink(missing_ok=True)
        body_path.unlink(missing_ok=True)
        return existed

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []

        keys: list[str] = []
        for meta_path in sorted(self.directory.rglob("*.json")):
            try:
                with open(meta_path, encoding="utf-8") as f:
                    keys.append(json.load(f)["key"])
            except FileNotFoundError:
                # Deleted by a concurrent writer since the directory scan
                continue
        return keys


class DiskCacheStorage(CacheStorage):
    """Disk-backed storage rooted at a base directory."""

    def __init__(self, base_dir: Path | None = None):
        """Initialize disk storage.

        Args:
            base_dir: Base directory, defaults to ~/.cache/shellsync
        """
        self.base_dir = base_dir or (Path.home() / ".cache" / "shellsync")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _container_dir(self, name: str) -> Path:
        if not name or "/" in name or name in {".", ".."}:
            raise ValueError(f"Invalid cache name: {name!r}")
        return self.base_dir / name

    def open(self, name: str) -> DiskCache:
        directory = self._container_dir(name)
        directory.mkdir(parents=True, exist_ok=True)
        return DiskCache(name, directory)

    def delete(self, name: str) -> bool:
        directory = self._container_dir(name)
        if not directory.exists():
            return False
        shutil.rmtree(directory)
        logger.debug("disk_cache_deleted", cache=name)
        return True

    def has(self, name: str) -> bool:
        return self._container_dir(name).is_dir()
