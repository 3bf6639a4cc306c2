"""Core type definitions for shellsync."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

ROOT_KEY = "/"


class ResourceManifest(BaseModel):
    """Mapping of resource key to content fingerprint for one release.

    The manifest is immutable; a new release replaces it wholesale.
    """

    resources: dict[str, str] = Field(default_factory=dict, description="Resource key to fingerprint")

    model_config = ConfigDict(frozen=True)

    def __contains__(self, key: object) -> bool:
        return key in self.resources

    def __len__(self) -> int:
        return len(self.resources)

    def fingerprint(self, key: str) -> str | None:
        """Get the fingerprint recorded for a key, or None if not managed."""
        return self.resources.get(key)

    def keys(self) -> list[str]:
        return list(self.resources)

    def to_json(self) -> str:
        """Serialize to the persisted record encoding (a flat JSON object)."""
        return json.dumps(self.resources, sort_keys=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> ResourceManifest:
        """Parse a persisted manifest record.

        Raises:
            ValueError: If the record is not a JSON object of strings
        """
        raw = json.loads(data)
        if not isinstance(raw, dict):
            raise ValueError(f"Manifest record must be a JSON object, got {type(raw).__name__}")
        return cls(resources=raw)


class Release(BaseModel):
    """A deployable version: its manifest and the ordered shell resources."""

    manifest: ResourceManifest = Field(..., description="Resource manifest")
    core: tuple[str, ...] = Field(default=(), description="Shell resources, in fetch order")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _core_in_manifest(self) -> Release:
        missing = [key for key in self.core if key not in self.manifest]
        if missing:
            raise ValueError(f"Core resources missing from manifest: {', '.join(missing)}")
        return self

    @classmethod
    def load(cls, path: Path) -> Release:
        """Load a release document produced by the build step.

        The document is ``{"resources": {key: fingerprint}, "core": [key, ...]}``.
        """
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        return cls(
            manifest=ResourceManifest(resources=raw.get("resources", {})),
            core=tuple(raw.get("core", [])),
        )


class RouteDecision(StrEnum):
    """How a read request is served."""
    INTERCEPT_CACHE = "cache"
    INTERCEPT_ONLINE_FIRST = "online_first"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True)
class Route:
    """Classification of a request with its canonical resource key."""

    decision: RouteDecision
    key: str | None = None


@dataclass(frozen=True)
class ResourceRequest:
    """A request intercepted by the router."""

    url: str
    method: str = "GET"


@dataclass
class CachedResponse:
    """A response payload as held by a cache container.

    Attributes:
        status: HTTP status code
        body: Response body
        headers: Response headers (lowercased names)
        url: URL the response was fetched from
    """

    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def copy(self) -> CachedResponse:
        return CachedResponse(self.status, self.body, dict(self.headers), self.url)
