"""Error types raised by the synchronization and routing components.

Fetch failures are recoverable only for the entry point. Stage failures
abort activation and leave the previous version in place. Reconciliation
failures are unrecoverable: the caches are torn down before raising.
"""

from __future__ import annotations


class ShellSyncError(Exception):
    """Base class for shellsync errors."""


class FetchFailure(ShellSyncError):
    """Raised when a resource cannot be fetched from the network.

    Attributes:
        key: Resource key being fetched, if known
        url: Request URL
        status: HTTP status for non-success responses, None for transport errors
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        url: str | None = None,
        status: int | None = None,
    ):
        self.key = key
        self.url = url
        self.status = status
        super().__init__(message)


class StageFailure(ShellSyncError):
    """Raised when a shell resource could not be staged during install."""

    def __init__(self, message: str, *, key: str):
        self.key = key
        super().__init__(message)


class ReconciliationFailure(ShellSyncError):
    """Raised after reconciliation failed and all caches were discarded."""


class LifecycleError(ShellSyncError):
    """Raised when a lifecycle hook is invoked in the wrong state."""


class UnknownCommandError(ShellSyncError):
    """Raised for a message command the worker does not understand."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unknown command: {command}")
