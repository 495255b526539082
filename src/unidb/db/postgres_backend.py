"""PostgreSQL implementation of the Backend protocol.

Uses asyncpg over a single connection (no pool). All SQL uses ``?``
placeholders on the parameterized path; this backend translates them to
``$N`` at execute time. The direct path sends the text unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from unidb.errors import DriverError
from unidb.models.field import FieldInfo
from unidb.models.settings import DatabaseSettings
from unidb.result import ResultSet

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)

# Pre-compiled regex for placeholder translation
_PLACEHOLDER_RE = re.compile(r"\?")


def _translate_placeholders(sql: str) -> str:
    """Convert ``?`` placeholders to ``$1, $2, ...`` for asyncpg."""
    counter = 0

    def _replace(_match: re.Match[str]) -> str:
        nonlocal counter
        counter += 1
        return f"${counter}"

    return _PLACEHOLDER_RE.sub(_replace, sql)


def _parse_rowcount(status: str | None) -> int:
    """Parse affected row count from an asyncpg status string.

    Examples: "INSERT 0 1" → 1, "UPDATE 3" → 3, "DELETE 0" → 0.
    """
    if not status:
        return -1
    parts = status.split()
    if len(parts) >= 2:
        try:
            return int(parts[-1])
        except ValueError:
            pass
    return -1


def _returned_id(status: str | None, rows: list[tuple[Any, ...]]) -> int:
    """Identifier from ``INSERT ... RETURNING``; 0 when none was returned."""
    if not status or not status.startswith("INSERT") or not rows or not rows[0]:
        return 0
    value = rows[0][0]
    return value if isinstance(value, int) else 0


def _connect_kwargs(settings: DatabaseSettings, database: str | None = None) -> dict[str, Any]:
    """Keyword arguments for ``asyncpg.connect``."""
    return {
        "host": settings.host,
        "port": settings.port,
        "user": settings.username,
        "password": settings.password,
        "database": database if database is not None else settings.name,
        "server_settings": {"client_encoding": settings.charset},
    }


def _driver_errors() -> tuple[type[BaseException], ...]:
    import asyncpg as _asyncpg

    return (_asyncpg.PostgresError, _asyncpg.InterfaceError, OSError)


class PostgresBackend:
    """PostgreSQL implementation of the Backend protocol.

    Row-returning statements are prepared and fetched eagerly; everything
    else goes through ``Connection.execute`` and reports its status string.
    asyncpg auto-commits each statement.
    """

    product_name = "PostgreSQL"
    version_sql = "SELECT version()"

    def __init__(self, conn: asyncpg.Connection, settings: DatabaseSettings) -> None:
        """Initialize with an open asyncpg connection and its settings."""
        self._conn = conn
        self._settings = settings

    @classmethod
    async def create(cls, settings: DatabaseSettings) -> PostgresBackend:
        """Open a connection using ``settings``."""
        import asyncpg as _asyncpg

        try:
            conn = await _asyncpg.connect(**_connect_kwargs(settings))
        except _driver_errors() as e:
            raise DriverError.from_exception(e) from e
        logger.debug("PostgreSQL connection opened to %s/%s", settings.host, settings.name)
        return cls(conn, settings)

    async def query(self, sql: str) -> ResultSet:
        """Execute literal SQL without binding parameters."""
        return await self._run(sql, ())

    async def execute_query(self, sql: str, params: Sequence[Any]) -> ResultSet:
        """Execute SQL with ``?`` placeholders bound from ``params``."""
        return await self._run(_translate_placeholders(sql), tuple(params))

    async def _run(self, sql: str, args: tuple[Any, ...]) -> ResultSet:
        try:
            stmt = await self._conn.prepare(sql)
            attributes = stmt.get_attributes()
            if not attributes:
                # DDL/DML: returns a status string
                status = await self._conn.execute(sql, *args)
                return ResultSet(affected_rows=_parse_rowcount(status))
            records = await stmt.fetch(*args)
            status = stmt.get_statusmsg()
        except _driver_errors() as e:
            raise DriverError.from_exception(e) from e
        fields = [
            FieldInfo(name=attr.name, position=i, type_name=attr.type.name)
            for i, attr in enumerate(attributes)
        ]
        rows = [tuple(record) for record in records]
        affected = _parse_rowcount(status)
        return ResultSet(
            fields,
            rows,
            affected_rows=affected if affected >= 0 else len(rows),
            insert_id=_returned_id(status, rows),
        )

    async def select_db(self, name: str) -> bool:
        """Reconnect to database ``name`` with the same host and credentials.

        The current connection is kept if the new one cannot be opened.
        """
        import asyncpg as _asyncpg

        try:
            conn = await _asyncpg.connect(**_connect_kwargs(self._settings, database=name))
        except _driver_errors() as e:
            logger.info("Cannot connect to PostgreSQL database %s: %s", name, e)
            return False
        await self._conn.close()
        self._conn = conn
        self._settings = self._settings.model_copy(update={"name": name})
        return True

    async def close(self) -> None:
        """Close the connection."""
        await self._conn.close()
