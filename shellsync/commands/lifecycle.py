"""Lifecycle commands: install, activate and message."""

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
from shellsync.core.errors import ShellSyncError
from shellsync.core.offline import DownloadReport
from shellsync.core.sync import ReconcileReport
from shellsync.core.utils import format_size
from shellsync.core.worker import Command, WorkerState


release_option = click.option(
    "--release",
    "-r",
    "release_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Release document with resources and core set",
)


def _print_reconcile(report: ReconcileReport, console, output_format: str) -> None:
    """Show the outcome of a reconciliation."""
    if output_format == "json":
        output_json({
            "first_install": report.first_install,
            "retained": report.retained,
            "evicted": report.evicted,
            "staged": report.staged,
        })
        return

    table = Table(title="Cache Reconciliation")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("First install", "yes" if report.first_install else "no")
    table.add_row("Retained", str(len(report.retained)))
    table.add_row("Evicted", str(len(report.evicted)))
    table.add_row("Staged", str(len(report.staged)))
    console.print(table)


def _print_download(report: DownloadReport, console, output_format: str) -> None:
    """Show the outcome of an offline download."""
    if output_format == "json":
        output_json({
            "fetched": sorted(report.fetched),
            "skipped": report.skipped,
            "total_bytes": report.total_bytes,
        })
        return

    console.print(
        f"[green]Downloaded {len(report.fetched)} resource(s) "
        f"({format_size(report.total_bytes)}), {report.skipped} already cached[/green]"
    )


@click.command()
@release_option
@click.pass_context
def install(ctx: click.Context, release_file: Path | None) -> None:
    """Stage the release's shell resources."""
    config, console, verbose, _ = get_context_objects(ctx)
    release = load_release(config, release_file)

    with console.status("Staging shell resources..."):
        worker = build_worker(config, release, state=WorkerState.PARSED)
        try:
            with worker.fetcher:
                staged = worker.install()
        except ShellSyncError as e:
            console.print(f"[red]Install failed: {e}[/red]")
            sys.exit(1)

    if config.output_format == "json":
        output_json({"staged": staged})
        return

    console.print(f"[green]Staged {len(staged)} shell resource(s)[/green]")
    if verbose:
        for key in staged:
            console.print(f"  {key}")


@click.command()
@release_option
@click.pass_context
def activate(ctx: click.Context, release_file: Path | None) -> None:
    """Reconcile the content cache with the release manifest."""
    config, console, _, _ = get_context_objects(ctx)
    release = load_release(config, release_file)

    worker = build_worker(config, release)
    if worker.state is not WorkerState.INSTALLED:
        console.print("[red]Nothing staged: run install first[/red]")
        sys.exit(1)

    try:
        with worker.fetcher:
            report = worker.activate()
    except ShellSyncError as e:
        console.print(f"[red]Activation failed, caches were reset: {e}[/red]")
        sys.exit(1)

    _print_reconcile(report, console, config.output_format)


@click.command()
@click.argument(
    "command",
    type=click.Choice([c.value for c in Command] + ["skipWaiting", "downloadOffline"]),
)
@release_option
@click.pass_context
def message(ctx: click.Context, command: str, release_file: Path | None) -> None:
    """Send a message-channel COMMAND to the worker."""
    config, console, _, _ = get_context_objects(ctx)
    release = load_release(config, release_file)
    worker = build_worker(config, release)

    try:
        with worker.fetcher:
            result = worker.handle_message(command)
    except ShellSyncError as e:
        console.print(f"[red]{command} failed: {e}[/red]")
        sys.exit(1)

    if isinstance(result, ReconcileReport):
        _print_reconcile(result, console, config.output_format)
    elif isinstance(result, DownloadReport):
        _print_download(result, console, config.output_format)
    elif config.output_format == "json":
        output_json({"command": command, "state": worker.state.value})
    else:
        console.print(f"Worker state: {worker.state.value}")
