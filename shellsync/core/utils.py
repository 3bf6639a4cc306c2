"""Shared utilities for shellsync."""

from __future__ import annotations

import hashlib

from shellsync.core.types import ROOT_KEY

CACHE_BUST_MARKER = "?v="


def key_digest(key: str) -> str:
    """Compute the hex MD5 digest used to name on-disk cache entries.

    Args:
        key: Resource key

    Returns:
        32-character lowercase hex digest

    Example:
        >>> key_digest("hello")
        '5d41402abc4b2a76b9719d911017c592'
    """
    return hashlib.md5(key.encode("utf-8")).hexdigest()


def resource_key(url: str, origin: str) -> str | None:
    """Derive the canonical resource key of a URL under an origin.

    The origin prefix and its separating slash are removed, a ``?v=``
    cache-busting suffix is dropped, and the origin root or a fragment-only
    navigation maps to the root key.

    Args:
        url: Absolute request URL
        origin: Application origin without trailing slash

    Returns:
        Resource key, or None if the URL belongs to another origin

    Example:
        >>> resource_key("https://app.example/main.js?v=123", "https://app.example")
        'main.js'
        >>> resource_key("https://app.example/#/settings", "https://app.example")
        '/'
    """
    if url == origin:
        return ROOT_KEY
    if not url.startswith(origin + "/"):
        return None

    key = url[len(origin) + 1:]
    if CACHE_BUST_MARKER in key:
        key = key.split(CACHE_BUST_MARKER)[0]
    if key == "" or key.startswith("#"):
        return ROOT_KEY
    return key


def resource_url(key: str, origin: str) -> str:
    """Build the absolute URL of a resource key.

    Example:
        >>> resource_url("/", "https://app.example")
        'https://app.example/'
        >>> resource_url("assets/logo.png", "https://app.example")
        'https://app.example/assets/logo.png'
    """
    if key == ROOT_KEY:
        return f"{origin}/"
    return f"{origin}/{key.lstrip('/')}"


def format_size(size: int) -> str:
    """Format byte size as human-readable string.

    Args:
        size: Size in bytes

    Returns:
        Formatted string with appropriate unit (e.g., "1.5 MB")

    Example:
        >>> format_size(1024)
        '1.0 KB'
        >>> format_size(1536)
        '1.5 KB'
    """
    if size < 0:
        return "0 B"

    size_float = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_float < 1024.0:
            if unit == "B":
                return f"{int(size_float)} {unit}"
            return f"{size_float:.1f} {unit}"
        size_float /= 1024.0
    return f"{size_float:.1f} PB"
