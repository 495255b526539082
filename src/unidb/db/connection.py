"""Backend construction from connection settings."""

import logging

from unidb.db.backend import Backend
from unidb.db.sqlite_backend import SQLiteBackend
from unidb.errors import DriverError
from unidb.models.settings import DatabaseSettings, Driver

logger = logging.getLogger(__name__)


async def create_backend(settings: DatabaseSettings) -> Backend:
    """Open a backend for ``settings``.

    Dispatches to SQLite or PostgreSQL based on ``settings.driver``.
    Connection failures surface as ``DriverError``.
    """
    if settings.driver == Driver.POSTGRESQL:
        return await _create_postgres(settings)
    return await SQLiteBackend.create(settings)


async def _create_postgres(settings: DatabaseSettings) -> Backend:
    """Create a PostgreSQL backend (requires the ``postgres`` extra)."""
    from unidb.db.postgres_backend import PostgresBackend

    try:
        return await PostgresBackend.create(settings)
    except ImportError as e:
        raise DriverError(
            type(e).__name__, "PostgreSQL driver unavailable: install unidb[postgres]"
        ) from e
