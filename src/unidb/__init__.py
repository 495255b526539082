"""Lazy, unified access layer over a single relational database connection."""

from unidb.database import Database
from unidb.errors import (
    DatabaseSelectionError,
    DriverError,
    NoResultError,
    NotConnectedError,
    ResultFreedError,
    UnidbError,
)
from unidb.models.settings import DatabaseSettings, Driver
from unidb.result import FetchMode, ResultSet, Row
from unidb.statement import StatementKind

__all__ = [
    "Database",
    "DatabaseSelectionError",
    "DatabaseSettings",
    "Driver",
    "DriverError",
    "FetchMode",
    "NoResultError",
    "NotConnectedError",
    "ResultFreedError",
    "ResultSet",
    "Row",
    "StatementKind",
    "UnidbError",
]
