"""Statement kinds and leading-keyword validation."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class StatementKind(StrEnum):
    """Classification of a SQL statement; drives result shaping."""

    CREATE = "create"
    DROP = "drop"
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class Statement:
    """SQL text with optional positional parameters."""

    sql: str
    params: Sequence[Any] | None
    kind: StatementKind

    @property
    def parameterized(self) -> bool:
        """True when the statement runs through the parameterized path."""
        return self.params is not None


def validate_sql(sql: str, keyword: str) -> str | None:
    """Return the trimmed SQL if it starts with ``keyword``, else None.

    The keyword must be followed by whitespace; matching ignores case.
    """
    sql = sql.strip()
    if re.match(rf"{re.escape(keyword)}\s", sql, re.IGNORECASE):
        return sql
    return None
