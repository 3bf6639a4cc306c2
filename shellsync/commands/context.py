"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from shellsync.core.config import AppConfig
from shellsync.core.fetcher import Fetcher
from shellsync.core.manifest import ManifestStore
from shellsync.core.storage import DiskCacheStorage
from shellsync.core.types import Release
from shellsync.core.worker import ServiceWorker, WorkerState


def get_context_objects(ctx: click.Context) -> tuple[AppConfig, Console, bool, bool]:
    """Extract common context objects."""
    config: AppConfig = ctx.obj["config"]
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj["verbose"]
    debug: bool = ctx.obj["debug"]
    return config, console, verbose, debug


def output_json(data: dict[str, Any]) -> None:
    """Output data as JSON."""
    # Plain print keeps Rich from wrapping or styling the document
    print(json.dumps(data, indent=2, default=str))


def load_release(config: AppConfig, release_file: Path | None) -> Release:
    """Load the release document named on the command line or in config."""
    path = release_file or config.release_file
    if path is None:
        raise click.UsageError("No release file given (use --release or set release_file in config)")
    try:
        return Release.load(path)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot load release {path}: {e}") from e


def detect_state(config: AppConfig, storage: DiskCacheStorage, release: Release) -> WorkerState:
    """Infer the worker state for a release from what is on disk.

    A staging cache means the newest worker installed and is waiting to
    activate. Otherwise the release is active only if its manifest is the
    saved one; a different saved manifest belongs to another version, so
    the cache must not serve this release's requests.
    """
    if storage.has(config.caches.staging):
        return WorkerState.INSTALLED
    if ManifestStore(storage, config.caches.manifest).load() == release.manifest:
        return WorkerState.ACTIVATED
    return WorkerState.PARSED


def build_worker(
    config: AppConfig,
    release: Release,
    state: WorkerState | None = None,
) -> ServiceWorker:
    """Create a worker over the configured disk cache."""
    storage = DiskCacheStorage(config.cache_dir)
    fetcher = Fetcher(config.network)
    if state is None:
        state = detect_state(config, storage, release)
    return ServiceWorker(release, storage, fetcher, config.caches, state=state)
