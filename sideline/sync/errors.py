"""
sideline.sync.errors — Sync Exceptions
=======================================
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for failures raised by the sync engine itself."""


class SyncDataError(SyncError):
    """An outbox event is structurally unusable (unknown type, missing
    Discord user id …).  Never retried; no Discord call is attempted."""


class RetryExhaustedError(SyncError):
    """A Discord call kept failing after every allowed attempt."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} failed after {attempts} attempts: "
            f"{type(last_error).__name__}: {last_error}"
        )
