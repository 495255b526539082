"""Database backends."""

from unidb.db.backend import Backend
from unidb.db.connection import create_backend
from unidb.db.sqlite_backend import SQLiteBackend

try:
    from unidb.db.postgres_backend import PostgresBackend
except ImportError:
    PostgresBackend = None  # type: ignore[assignment,misc]

__all__ = ["Backend", "PostgresBackend", "SQLiteBackend", "create_backend"]
