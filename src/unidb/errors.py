"""Exceptions raised inside the access layer.

Only ``DatabaseSelectionError``, ``NoResultError`` and ``ResultFreedError``
ever reach callers. ``DriverError`` is raised by backends and captured into
the error state by ``Database``.
"""

from __future__ import annotations

# SQLSTATE "connection_does_not_exist"
NOT_CONNECTED_SQLSTATE = "08003"


class UnidbError(Exception):
    """Base class for all unidb errors."""


class DriverError(UnidbError):
    """A driver-level failure, normalized across backends."""

    def __init__(self, code: int | str | None, message: str) -> None:
        """Initialize with the driver's error code and message."""
        super().__init__(message)
        self.code = code
        self.message = message

    @classmethod
    def from_exception(cls, exc: BaseException) -> DriverError:
        """Wrap a driver exception, picking up whichever code it carries."""
        code = (
            getattr(exc, "sqlstate", None)
            or getattr(exc, "sqlite_errorcode", None)
            or type(exc).__name__
        )
        return cls(code, str(exc) or type(exc).__name__)


class NotConnectedError(DriverError):
    """The database connection was never opened or has been closed."""

    def __init__(self) -> None:
        """Initialize with the SQLSTATE for a missing connection."""
        super().__init__(NOT_CONNECTED_SQLSTATE, "No database connection")


class DatabaseSelectionError(UnidbError):
    """Switching the connection to another database failed."""

    def __init__(self, name: str) -> None:
        """Initialize with the database name that could not be selected."""
        super().__init__(f"Database selection failed: Cannot connect to {name}")
        self.name = name


class NoResultError(UnidbError):
    """An accessor was called without an explicit or current result."""


class ResultFreedError(UnidbError):
    """An accessor was called on a result set that has been freed."""
