"""Unified query execution over a single database connection.

``Database`` funnels every statement through ``exec``, which picks the
direct or parameterized path, shapes the outcome by statement kind, and
captures driver failures into ``error_state`` instead of raising. Verbs
return ``False`` on failure; check ``error_state`` (or ``last_failure``)
right after a ``False`` return.

The object returned by ``get_instance()`` keeps the most recent select
result as the *current result* and lets accessors default to it. That slot
is shared by every caller of the instance: tasks that run selects
concurrently must pass explicit ``ResultSet`` handles, or use a private
instance from ``Database.connect(..., implicit_result=False)``.
"""

from __future__ import annotations

import asyncio
import logging
import re
import traceback
from collections.abc import Sequence
from types import SimpleNamespace
from typing import Any, Literal, NoReturn

from unidb.config import get_settings
from unidb.db.backend import Backend
from unidb.db.connection import create_backend
from unidb.errors import (
    DatabaseSelectionError,
    DriverError,
    NoResultError,
    NotConnectedError,
    UnidbError,
)
from unidb.models.errors import ErrorState, Failure
from unidb.models.field import FieldInfo
from unidb.models.settings import DatabaseSettings
from unidb.result import FetchMode, ResultSet, Row
from unidb.statement import Statement, StatementKind, validate_sql

logger = logging.getLogger(__name__)

_instance: Database | None = None
_instance_lock = asyncio.Lock()

_VERSION_RE = re.compile(r"[0-9]+(?:\.[0-9]+)*")
# Checked in order; the first substring found in the version string wins
_PRODUCT_MARKERS = ("MariaDB", "CockroachDB", "PostgreSQL", "MySQL")

Params = Sequence[Any] | None


class Database:
    """Access layer over one backend connection."""

    def __init__(self, backend: Backend | None, *, implicit_result: bool = True) -> None:
        """Wrap an open backend, or None for an instance that failed to connect."""
        self._backend = backend
        self.implicit_result = implicit_result
        self.error_state = ErrorState()
        self.last_failure: Failure | None = None
        self.last_statement: Statement | None = None
        self.affected_rows: int | None = None
        self.insert_id: int | None = None
        self._result: ResultSet | None = None

    # -- Connection holder --

    @classmethod
    async def get_instance(cls) -> Database:
        """Return the process-wide instance, connecting on first call."""
        global _instance
        if _instance is None:
            async with _instance_lock:
                if _instance is None:
                    _instance = await cls.connect(get_settings())
        return _instance

    @classmethod
    async def connect(
        cls, settings: DatabaseSettings, *, implicit_result: bool = True
    ) -> Database:
        """Open a privately owned instance.

        A failed connection does not raise: the returned instance carries
        the failure in ``error_state`` and fails every statement.
        """
        try:
            backend = await create_backend(settings)
        except DriverError as e:
            db = cls(None, implicit_result=implicit_result)
            db._record_driver_failure(e)
            logger.warning("Connection to %s database failed: %s", settings.driver, e.message)
            return db
        logger.info("Connected to %s database %s", settings.driver, settings.name)
        return cls(backend, implicit_result=implicit_result)

    def __copy__(self) -> NoReturn:
        raise TypeError("Database instances cannot be copied")

    def __deepcopy__(self, memo: dict[int, Any]) -> NoReturn:
        raise TypeError("Database instances cannot be copied")

    @property
    def connected(self) -> bool:
        """Whether a live connection is held."""
        return self._backend is not None

    @property
    def result(self) -> ResultSet | None:
        """The current result, set by the most recent select."""
        return self._result

    async def select_db(self, name: str) -> None:
        """Repoint the connection at database ``name`` on the same server.

        Raises DatabaseSelectionError if the database cannot be reached.
        """
        if self._backend is None or not await self._backend.select_db(name):
            raise DatabaseSelectionError(name)
        logger.info("Selected database %s", name)

    async def close(self) -> bool:
        """Release the connection. Later statements fail as not connected."""
        if self._backend is None:
            return False
        backend, self._backend = self._backend, None
        await backend.close()
        logger.info("Database connection closed")
        return True

    # -- Error state --

    def _record_driver_failure(self, exc: DriverError) -> None:
        self.last_failure = self.error_state.record_driver_failure(
            exc.code, exc.message, traceback.format_exception(exc)
        )

    def _record_validation_failure(self, message: str) -> None:
        self.last_failure = self.error_state.record_validation_failure(message)

    # -- Execution dispatcher --

    async def exec(
        self, sql: str, params: Params, kind: StatementKind
    ) -> ResultSet | int | Literal[False]:
        """Run one statement and shape its outcome by ``kind``.

        ``params=None`` runs the text directly; any sequence, including an
        empty one, runs it as a parameterized statement. Returns the
        generated id for insert/replace, the affected-row count for
        update/delete, the ResultSet otherwise, and False on driver failure.
        """
        self.last_statement = Statement(sql, params, kind)
        logger.debug("Executing %s statement: %s", kind, sql)
        try:
            if self._backend is None:
                raise NotConnectedError()
            if params is None:
                result = await self._backend.query(sql)
            else:
                result = await self._backend.execute_query(sql, params)
        except DriverError as e:
            self._record_driver_failure(e)
            logger.warning("%s statement failed: [%s] %s", kind, e.code, e.message)
            return False

        match kind:
            case StatementKind.INSERT | StatementKind.REPLACE:
                self.affected_rows = result.affected_rows
                self.insert_id = result.insert_id
                return self.insert_id
            case StatementKind.UPDATE | StatementKind.DELETE:
                self.affected_rows = result.affected_rows
                return self.affected_rows
            case StatementKind.SELECT:
                self._result = result
                return result
            case _:
                return result

    # -- Verbs --

    async def _exec_validated(self, sql: str, kind: StatementKind) -> bool:
        checked = validate_sql(sql, kind)
        if checked is None:
            self._record_validation_failure(f"Invalid SQL provided for the {kind} command")
            return False
        return await self.exec(checked, None, kind) is not False

    async def create(self, sql: str) -> bool:
        """Run a CREATE statement. Other leading keywords are rejected."""
        return await self._exec_validated(sql, StatementKind.CREATE)

    async def drop(self, sql: str) -> bool:
        """Run a DROP statement. Other leading keywords are rejected."""
        return await self._exec_validated(sql, StatementKind.DROP)

    async def select(self, sql: str, params: Params = None) -> ResultSet | Literal[False]:
        """Run a query and return its result set."""
        result = await self.exec(sql, params, StatementKind.SELECT)
        return result if isinstance(result, ResultSet) else False

    async def insert(self, sql: str, params: Params = None) -> int | Literal[False]:
        """Run an INSERT and return the generated identifier."""
        return await self._exec_counted(sql, params, StatementKind.INSERT)

    async def replace(self, sql: str, params: Params = None) -> int | Literal[False]:
        """Run a REPLACE (or upsert) and return the generated identifier."""
        return await self._exec_counted(sql, params, StatementKind.REPLACE)

    async def update(self, sql: str, params: Params = None) -> int | Literal[False]:
        """Run an UPDATE and return the affected-row count (0 is success)."""
        return await self._exec_counted(sql, params, StatementKind.UPDATE)

    async def delete(self, sql: str, params: Params = None) -> int | Literal[False]:
        """Run a DELETE and return the affected-row count (0 is success)."""
        return await self._exec_counted(sql, params, StatementKind.DELETE)

    async def _exec_counted(
        self, sql: str, params: Params, kind: StatementKind
    ) -> int | Literal[False]:
        result = await self.exec(sql, params, kind)
        if result is False or isinstance(result, ResultSet):
            return False
        return result

    # -- Result accessors --

    def _resolve(self, result: ResultSet | None) -> ResultSet:
        if result is not None:
            return result
        if not self.implicit_result:
            raise NoResultError("An explicit result set is required")
        if self._result is None:
            raise NoResultError("No current result set")
        return self._result

    def fetch_array(
        self, result: ResultSet | None = None, mode: FetchMode = FetchMode.BOTH
    ) -> Row | dict[str, Any] | tuple[Any, ...] | None:
        """Next row shaped by ``mode``; None at end of results."""
        return self._resolve(result).fetch_array(mode)

    def fetch_assoc(self, result: ResultSet | None = None) -> dict[str, Any] | None:
        """Next row as a column-name dict."""
        return self._resolve(result).fetch_assoc()

    def fetch_object(self, result: ResultSet | None = None) -> SimpleNamespace | None:
        """Next row as an object; fetch failures go to ``error_state.error``."""
        try:
            return self._resolve(result).fetch_object()
        except UnidbError as e:
            self._record_validation_failure(str(e))
            return None

    def row_count(self, result: ResultSet | None = None) -> int:
        """Number of rows in the result, or 0 when there is none."""
        if result is None:
            result = self._result if self.implicit_result else None
        return result.num_rows if result is not None else 0

    def seek(self, result: ResultSet | None, offset: int) -> bool:
        """Move the read position; False if ``offset`` is out of range."""
        return self._resolve(result).data_seek(offset)

    def field_count(self, result: ResultSet | None = None) -> int:
        """Number of columns in the result."""
        return self._resolve(result).field_count

    def field_info(self, result: ResultSet | None, index: int) -> FieldInfo:
        """Metadata for the column at ``index``."""
        return self._resolve(result).fetch_field_direct(index)

    def field_name(self, result: ResultSet | None, index: int) -> str:
        """Name of the column at ``index``."""
        return self._resolve(result).fetch_field_direct(index).name

    def free(self, result: ResultSet | None = None) -> None:
        """Release a result set; forgets it if it was the current result."""
        target = self._resolve(result)
        target.free()
        if target is self._result:
            self._result = None

    # -- Shortcuts --

    async def _select_current(self, sql: str, params: Params) -> ResultSet | Literal[False]:
        """Select into the current result slot, emptying it on failure."""
        result = await self.select(sql, params)
        if result is False:
            self._result = None
        return result

    async def getval(self, sql: str, params: Params = None) -> Any:
        """First column of the first row.

        Returns False both on failure and when no row matched, so a stored
        False is indistinguishable from "no row" without checking num_rows.
        """
        result = await self._select_current(sql, params)
        if result is False:
            return False
        row = result.fetch_array(FetchMode.NUM)
        if row is None:
            return False
        return row[0]

    async def getrow(
        self, sql: str, params: Params = None
    ) -> dict[str, Any] | None | Literal[False]:
        """First row as a dict; None when no row matched."""
        result = await self._select_current(sql, params)
        if result is False:
            return False
        return result.fetch_assoc()

    async def getobject(
        self, sql: str, params: Params = None
    ) -> SimpleNamespace | None | Literal[False]:
        """First row as an object; None when no row matched."""
        result = await self._select_current(sql, params)
        if result is False:
            return False
        return result.fetch_object()

    async def num_rows(self, sql: str, params: Params = None) -> int | Literal[False]:
        """Number of rows the query returns."""
        result = await self._select_current(sql, params)
        if result is False:
            return False
        return result.num_rows

    async def get_version_number(self) -> str | Literal[False]:
        """Server version as dotted digits, e.g. ``"10.11.6"``."""
        server = await self._server_version()
        if server is False:
            return False
        match = _VERSION_RE.search(server[1])
        return match.group(0) if match else ""

    async def get_database_type(self) -> str | Literal[False]:
        """Server product name, e.g. ``"MariaDB"`` or ``"SQLite"``."""
        server = await self._server_version()
        if server is False:
            return False
        product, version = server
        for marker in _PRODUCT_MARKERS:
            if marker in version:
                return marker
        return product

    async def _server_version(self) -> tuple[str, str] | Literal[False]:
        """Backend product name and the raw server version string."""
        if self._backend is None:
            self._record_driver_failure(NotConnectedError())
            return False
        product = self._backend.product_name
        value = await self.getval(self._backend.version_sql)
        if value is False:
            return False
        return product, str(value)
