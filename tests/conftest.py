"""Shared test fixtures."""

import asyncio

import pytest_asyncio

import unidb.database as database_module
from unidb.config import configure
from unidb.database import Database
from unidb.models.field import FieldInfo
from unidb.models.settings import DatabaseSettings
from unidb.result import ResultSet

MEMORY_SETTINGS = DatabaseSettings(name=":memory:")

PEOPLE_SCHEMA = (
    "CREATE TABLE people (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE,"
    " age INTEGER)"
)


@pytest_asyncio.fixture
async def db():
    """Database over an in-memory SQLite connection."""
    conn = await Database.connect(MEMORY_SETTINGS)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def people(db):
    """Database with a populated ``people`` table."""
    await db.create(PEOPLE_SCHEMA)
    for name, age in [("ada", 36), ("grace", 45), ("linus", 0)]:
        await db.insert("INSERT INTO people (name, age) VALUES (?, ?)", [name, age])
    return db


@pytest_asyncio.fixture
async def shared_instance(monkeypatch):
    """Fresh process-wide instance slot configured for in-memory SQLite."""
    monkeypatch.setattr(database_module, "_instance", None)
    monkeypatch.setattr(database_module, "_instance_lock", asyncio.Lock())
    configure(MEMORY_SETTINGS)
    yield
    instance = database_module._instance
    if instance is not None:
        await instance.close()
    configure(None)


class FakeBackend:
    """Controllable in-process backend that records every call."""

    product_name = "FakeDB"
    version_sql = "SELECT version()"

    def __init__(self, result: ResultSet | None = None, error: Exception | None = None):
        self.result = result if result is not None else ResultSet()
        self.error = error
        self.calls: list[tuple[str, str, list | None]] = []
        self.selected: list[str] = []
        self.select_ok = True
        self.closed = False

    async def query(self, sql):
        self.calls.append(("query", sql, None))
        if self.error is not None:
            raise self.error
        return self.result

    async def execute_query(self, sql, params):
        self.calls.append(("execute_query", sql, list(params)))
        if self.error is not None:
            raise self.error
        return self.result

    async def select_db(self, name):
        self.selected.append(name)
        return self.select_ok

    async def close(self):
        self.closed = True


def single_value(value, name: str = "value") -> ResultSet:
    """One-column, one-row result set."""
    return ResultSet([FieldInfo(name=name, position=0)], [(value,)])
