"""SQLite implementation of the Backend protocol.

Thin wrapper around aiosqlite.Connection. No SQL translation is needed
since ``?`` is SQLite's native placeholder. The connection runs in
autocommit mode; this layer never manages transactions.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiosqlite

from unidb.errors import DriverError
from unidb.models.field import FieldInfo
from unidb.models.settings import DatabaseSettings
from unidb.result import ResultSet

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_ENCODINGS = {
    "utf8": "UTF-8",
    "utf8mb4": "UTF-8",
    "utf-8": "UTF-8",
    "utf16": "UTF-16",
    "utf-16": "UTF-16",
    "utf16le": "UTF-16le",
    "utf-16le": "UTF-16le",
    "utf16be": "UTF-16be",
    "utf-16be": "UTF-16be",
}


def _sqlite_encoding(charset: str) -> str:
    """Map a charset name to the spelling ``PRAGMA encoding`` accepts."""
    return _ENCODINGS.get(charset.lower(), charset)


async def _open(target: str, *, uri: bool = False) -> aiosqlite.Connection:
    conn = await aiosqlite.connect(target, uri=uri, isolation_level=None)
    await conn.execute("PRAGMA foreign_keys=ON")
    return conn


class SQLiteBackend:
    """SQLite implementation of the Backend protocol.

    The raw connection is exposed as ``_conn`` for SQLite-specific
    operations in tests.
    """

    product_name = "SQLite"
    version_sql = "SELECT sqlite_version()"

    def __init__(self, conn: aiosqlite.Connection, path: str = MEMORY) -> None:
        """Initialize with an open aiosqlite connection and its file path."""
        self._conn = conn
        self.path = path

    @classmethod
    async def create(cls, settings: DatabaseSettings) -> SQLiteBackend:
        """Open the database named in ``settings`` and apply its charset."""
        path = settings.name or ""
        if path not in ("", MEMORY):
            path = str(Path(path).expanduser())
        try:
            conn = await _open(path)
        except aiosqlite.Error as e:
            raise DriverError.from_exception(e) from e
        try:
            encoding = _sqlite_encoding(settings.charset).replace("'", "''")
            await conn.execute(f"PRAGMA encoding = '{encoding}'")
        except aiosqlite.Error as e:
            await conn.close()
            raise DriverError.from_exception(e) from e
        logger.debug("SQLite database opened at %s", path or "<temporary>")
        return cls(conn, path)

    async def query(self, sql: str) -> ResultSet:
        """Execute literal SQL without binding parameters."""
        before = self._conn.total_changes
        try:
            cursor = await self._conn.execute(sql)
        except aiosqlite.Error as e:
            raise DriverError.from_exception(e) from e
        return await self._buffer(cursor, before)

    async def execute_query(self, sql: str, params: Sequence[Any]) -> ResultSet:
        """Execute SQL with ``?`` placeholders bound from ``params``."""
        before = self._conn.total_changes
        try:
            cursor = await self._conn.execute(sql, tuple(params))
        except aiosqlite.Error as e:
            raise DriverError.from_exception(e) from e
        return await self._buffer(cursor, before)

    async def _buffer(self, cursor: aiosqlite.Cursor, before: int) -> ResultSet:
        """Read every row from ``cursor`` into a ResultSet.

        ``before`` is the connection's ``total_changes`` ahead of the execute.
        sqlite3 leaves ``rowcount`` at -1 for DML that does not start with its
        verb (``WITH ... UPDATE``), so the change delta stands in for it.
        """
        try:
            if cursor.description is None:
                affected = cursor.rowcount
                if affected < 0:
                    affected = self._conn.total_changes - before
                return ResultSet(affected_rows=affected, insert_id=cursor.lastrowid or 0)
            fields = [
                FieldInfo(name=column[0], position=i)
                for i, column in enumerate(cursor.description)
            ]
            rows = await cursor.fetchall()
            # rowcount stays -1 for plain SELECT; RETURNING clauses report it
            affected = cursor.rowcount if cursor.rowcount >= 0 else len(rows)
            return ResultSet(
                fields, rows, affected_rows=affected, insert_id=cursor.lastrowid or 0
            )
        except aiosqlite.Error as e:
            raise DriverError.from_exception(e) from e
        finally:
            await cursor.close()

    async def select_db(self, name: str) -> bool:
        """Reopen the connection on another existing database file.

        Relative names resolve beside the current database file. The
        current connection is kept if the target cannot be opened.
        """
        target = Path(name).expanduser()
        if not target.is_absolute() and self.path not in ("", MEMORY):
            target = Path(self.path).parent / target
        try:
            conn = await _open(f"file:{target}?mode=rw", uri=True)
        except aiosqlite.Error as e:
            logger.info("Cannot open SQLite database %s: %s", target, e)
            return False
        await self._conn.close()
        self._conn = conn
        self.path = str(target)
        return True

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()
