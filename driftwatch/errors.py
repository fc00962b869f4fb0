"""Error taxonomy for drift runs.

Only ``TemporaryPlanError`` is recoverable: the checker logs it and moves on to
the next workspace. Every other ``DriftwatchError`` raised inside a scheduled
work function aborts the whole run.
"""

from __future__ import annotations


class DriftwatchError(Exception):
    """Base class for all driftwatch failures."""


class ConfigError(DriftwatchError):
    """Raised when settings or the repo project configuration cannot be loaded."""


class CheckoutError(DriftwatchError):
    """Raised when the infrastructure repository cannot be checked out."""


class CacheError(DriftwatchError):
    """Raised when the result cache is unreachable or holds corrupt data."""


class PlanQueryError(DriftwatchError):
    """Raised when the plan backend cannot produce a plan summary."""

    temporary: bool = False

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TemporaryPlanError(PlanQueryError):
    """A plan query failure worth retrying on a later run."""

    temporary = True


class TerraformError(DriftwatchError):
    """Raised when a terraform CLI invocation fails."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class NotificationError(DriftwatchError):
    """Raised when a notification sink fails to deliver."""


class RunCancelled(DriftwatchError):
    """Raised by work functions that observe a cancelled run token."""


def is_temporary(exc: BaseException) -> bool:
    """Return True when the error is tagged as temporary by its producer."""
    return bool(getattr(exc, "temporary", False))
