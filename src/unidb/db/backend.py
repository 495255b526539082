"""Database backend protocol: a thin abstraction over one async DB connection.

``Database`` programs against this protocol. Each backend (SQLite,
Postgres, ...) provides a concrete implementation that buffers
row-returning statements into a ``ResultSet`` and raises ``DriverError``
for every driver-level failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from unidb.result import ResultSet


@runtime_checkable
class Backend(Protocol):
    """Async backend owning exactly one live connection.

    All SQL uses ``?`` positional placeholders. Non-SQLite backends
    translate them at execute time.
    """

    product_name: str
    """Server product reported when the version string names none."""

    version_sql: str
    """Query returning the server version as a single value."""

    async def query(self, sql: str) -> ResultSet:
        """Execute literal SQL without binding parameters."""
        ...

    async def execute_query(self, sql: str, params: Sequence[Any]) -> ResultSet:
        """Execute SQL with positional placeholders bound from ``params``."""
        ...

    async def select_db(self, name: str) -> bool:
        """Point the connection at another database. Returns False on failure."""
        ...

    async def close(self) -> None:
        """Close the database connection."""
        ...
