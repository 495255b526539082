"""Buffered result sets and row shapes.

Backends read every row of a row-returning statement up front, so a
``ResultSet`` knows its row count immediately and supports random access
through ``data_seek``. All accessors are synchronous.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from enum import StrEnum
from types import SimpleNamespace
from typing import Any

from unidb.errors import ResultFreedError
from unidb.models.field import FieldInfo


class FetchMode(StrEnum):
    """Shape of a fetched row."""

    ASSOC = "assoc"
    NUM = "num"
    BOTH = "both"


class Row:
    """A row supporting both named and positional access."""

    __slots__ = ("_names", "_values")

    def __init__(self, names: Sequence[str], values: Sequence[Any]) -> None:
        """Initialize with column names and the matching values."""
        self._names = tuple(names)
        self._values = tuple(values)

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        if isinstance(key, int):
            return self._values[key]
        try:
            # Last column wins on duplicate names, like the dict form
            index = len(self._names) - 1 - self._names[::-1].index(key)
        except ValueError:
            raise KeyError(key) from None
        return self._values[index]

    def keys(self) -> list[str]:
        """Return column names."""
        return list(self._names)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._names == other._names and self._values == other._values
        if isinstance(other, tuple):
            return self._values == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._names, self._values))

    def __repr__(self) -> str:
        pairs = ", ".join(f"{n}={v!r}" for n, v in zip(self._names, self._values, strict=True))
        return f"Row({pairs})"


class ResultSet:
    """Cursor over the rows produced by one statement.

    Non row-returning statements (DDL, DML) also produce a ``ResultSet``
    with no fields; it carries the affected-row count and the generated
    identifier reported by the driver.
    """

    def __init__(
        self,
        fields: Sequence[FieldInfo] = (),
        rows: Sequence[Sequence[Any]] = (),
        *,
        affected_rows: int = -1,
        insert_id: int = 0,
    ) -> None:
        """Initialize with field metadata, buffered rows and DML counters."""
        self._rows: list[tuple[Any, ...]] = [tuple(r) for r in rows]
        self._fields = [
            f.model_copy(update={"max_length": _max_length(self._rows, f.position)})
            for f in fields
        ]
        self._names = [f.name for f in self._fields]
        self._position = 0
        self._freed = False
        self.affected_rows = affected_rows
        self.insert_id = insert_id

    def _check(self) -> None:
        if self._freed:
            raise ResultFreedError("Result set has already been freed")

    @property
    def freed(self) -> bool:
        """Whether ``free()`` has been called."""
        return self._freed

    @property
    def num_rows(self) -> int:
        """Number of rows in the result set."""
        self._check()
        return len(self._rows)

    @property
    def field_count(self) -> int:
        """Number of columns in the result set."""
        self._check()
        return len(self._fields)

    @property
    def position(self) -> int:
        """Index of the row the next fetch will return."""
        self._check()
        return self._position

    def _next(self) -> tuple[Any, ...] | None:
        self._check()
        if self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def fetch_array(
        self, mode: FetchMode = FetchMode.BOTH
    ) -> Row | dict[str, Any] | tuple[Any, ...] | None:
        """Fetch the next row in the requested shape, or None if exhausted."""
        values = self._next()
        if values is None:
            return None
        match FetchMode(mode):
            case FetchMode.ASSOC:
                return dict(zip(self._names, values, strict=True))
            case FetchMode.NUM:
                return values
            case FetchMode.BOTH:
                return Row(self._names, values)

    def fetch_assoc(self) -> dict[str, Any] | None:
        """Fetch the next row as a column-name dict."""
        values = self._next()
        if values is None:
            return None
        return dict(zip(self._names, values, strict=True))

    def fetch_object(self) -> SimpleNamespace | None:
        """Fetch the next row as an object with one attribute per column."""
        row = self.fetch_assoc()
        if row is None:
            return None
        return SimpleNamespace(**row)

    def data_seek(self, offset: int) -> bool:
        """Move the read position to ``offset``. Returns False if out of range."""
        self._check()
        if offset < 0 or offset >= len(self._rows):
            return False
        self._position = offset
        return True

    def fetch_field_direct(self, index: int) -> FieldInfo:
        """Return metadata for the column at ``index``."""
        self._check()
        if index < 0:
            raise IndexError(f"Field index out of range: {index}")
        return self._fields[index]

    def free(self) -> None:
        """Release the buffered rows."""
        self._rows = []
        self._position = 0
        self._freed = True

    def __iter__(self) -> Iterator[dict[str, Any]]:
        """Iterate over the remaining rows as dicts."""
        while (row := self.fetch_assoc()) is not None:
            yield row

    def __repr__(self) -> str:
        if self._freed:
            return "ResultSet(freed)"
        return f"ResultSet(fields={self._names!r}, rows={len(self._rows)})"


def _max_length(rows: list[tuple[Any, ...]], position: int) -> int:
    """Longest rendered value in a column, ignoring NULLs."""
    lengths = [len(str(row[position])) for row in rows if row[position] is not None]
    return max(lengths, default=0)
