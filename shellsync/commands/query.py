"""Query commands: serve a single request and show cache status."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.table import Table

from shellsync.commands.context import (
    build_worker,
    get_context_objects,
    load_release,
    output_json,
)
from shellsync.commands.lifecycle import release_option
from shellsync.core.errors import ShellSyncError
from shellsync.core.manifest import ManifestStore
from shellsync.core.types import ResourceRequest
from shellsync.core.utils import format_size, resource_url


@click.command()
@click.argument("key", type=str)
@release_option
@click.option(
    "--output-file",
    "-f",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the response body to a file",
)
@click.pass_context
def get(ctx: click.Context, key: str, release_file: Path | None, output_file: Path | None) -> None:
    """Serve KEY through the router as the worker would."""
    config, console, verbose, _ = get_context_objects(ctx)
    release = load_release(config, release_file)
    worker = build_worker(config, release)

    request = ResourceRequest(resource_url(key, config.network.origin))
    route = worker.classify(request)
    try:
        with worker.fetcher:
            response = worker.handle_fetch(request)
    except ShellSyncError as e:
        console.print(f"[red]Request failed: {e}[/red]")
        sys.exit(1)

    if output_file:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(response.body)

    if config.output_format == "json":
        output_json({
            "key": route.key,
            "route": route.decision.value,
            "state": worker.state.value,
            "status": response.status,
            "size": len(response.body),
        })
        return

    console.print(
        f"{route.key or key}: HTTP {response.status}, {format_size(len(response.body))} "
        f"[dim]({route.decision.value})[/dim]"
    )
    if verbose:
        for name, value in sorted(response.headers.items()):
            console.print(f"  {name}: {value}")


@click.command()
@release_option
@click.pass_context
def status(ctx: click.Context, release_file: Path | None) -> None:
    """Compare the cache contents with the release manifest."""
    config, console, verbose, _ = get_context_objects(ctx)
    release = load_release(config, release_file)
    worker = build_worker(config, release)

    storage = worker.engine.storage
    cached = set(storage.open(config.caches.content).keys())
    saved = ManifestStore(storage, config.caches.manifest).load()
    manifest = release.manifest

    missing = [key for key in manifest.keys() if key not in cached]
    if config.output_format == "json":
        output_json({
            "state": worker.state.value,
            "resources": len(manifest),
            "cached": len(cached),
            "missing": missing,
            "manifest_saved": saved is not None,
            "manifest_current": saved == manifest,
        })
        return

    table = Table(title="Cache Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Worker state", worker.state.value)
    table.add_row("Resources", str(len(manifest)))
    table.add_row("Cached", str(len(cached)))
    table.add_row("Missing", str(len(missing)))
    table.add_row("Saved manifest", "none" if saved is None else ("current" if saved == manifest else "outdated"))
    console.print(table)

    if verbose and missing:
        missing_table = Table(title="Missing Resources")
        missing_table.add_column("Key", style="cyan")
        missing_table.add_column("Fingerprint", style="magenta")
        for key in missing:
            missing_table.add_row(key, manifest.fingerprint(key) or "")
        console.print(missing_table)
