"""Tests for the execution dispatcher and the statement verbs."""

import pytest

from tests.conftest import PEOPLE_SCHEMA, FakeBackend, single_value
from unidb.database import Database
from unidb.errors import DriverError
from unidb.models.errors import DriverFailure, ValidationFailure
from unidb.result import ResultSet
from unidb.statement import StatementKind


class TestDispatchPath:
    """params=None runs directly; any sequence runs parameterized."""

    @pytest.mark.asyncio
    async def test_no_params_uses_direct_path(self):
        backend = FakeBackend()
        db = Database(backend)
        await db.select("SELECT 1")
        assert backend.calls == [("query", "SELECT 1", None)]

    @pytest.mark.asyncio
    async def test_empty_params_uses_parameterized_path(self):
        backend = FakeBackend()
        db = Database(backend)
        await db.select("SELECT 1", [])
        assert backend.calls == [("execute_query", "SELECT 1", [])]

    @pytest.mark.asyncio
    async def test_params_are_bound_in_order(self):
        backend = FakeBackend()
        db = Database(backend)
        await db.update("UPDATE t SET a = ? WHERE b = ?", (1, "x"))
        assert backend.calls == [("execute_query", "UPDATE t SET a = ? WHERE b = ?", [1, "x"])]

    @pytest.mark.asyncio
    async def test_both_paths_return_equivalent_rows(self, people):
        direct = await people.select("SELECT name, age FROM people ORDER BY id")
        bound = await people.select("SELECT name, age FROM people ORDER BY id", [])
        assert list(direct) == list(bound)
        assert direct.num_rows == 3

    @pytest.mark.asyncio
    async def test_last_statement_is_cached(self):
        db = Database(FakeBackend())
        await db.delete("DELETE FROM t WHERE id = ?", [4])
        assert db.last_statement is not None
        assert db.last_statement.sql == "DELETE FROM t WHERE id = ?"
        assert db.last_statement.params == [4]
        assert db.last_statement.kind == StatementKind.DELETE
        assert db.last_statement.parameterized


class TestResultShaping:
    """Outcome shape depends on the statement kind."""

    @pytest.mark.asyncio
    async def test_insert_returns_identifier_and_records_affected_rows(self):
        db = Database(FakeBackend(ResultSet(affected_rows=1, insert_id=42)))
        assert await db.insert("INSERT INTO t (a) VALUES (1)") == 42
        assert db.insert_id == 42
        assert db.affected_rows == 1

    @pytest.mark.asyncio
    async def test_replace_returns_identifier(self):
        db = Database(FakeBackend(ResultSet(affected_rows=2, insert_id=7)))
        assert await db.replace("REPLACE INTO t (id, a) VALUES (7, 1)") == 7
        assert db.affected_rows == 2

    @pytest.mark.asyncio
    async def test_update_and_delete_return_affected_rows(self):
        db = Database(FakeBackend(ResultSet(affected_rows=3)))
        assert await db.update("UPDATE t SET a = 1") == 3
        assert await db.delete("DELETE FROM t") == 3
        assert db.affected_rows == 3

    @pytest.mark.asyncio
    async def test_select_returns_result_and_sets_current(self):
        result = single_value(1)
        db = Database(FakeBackend(result))
        assert await db.select("SELECT 1") is result
        assert db.result is result

    @pytest.mark.asyncio
    async def test_empty_select_result_is_truthy(self, people):
        result = await people.select("SELECT * FROM people WHERE id = ?", [999])
        assert result is not False
        assert result
        assert result.num_rows == 0

    @pytest.mark.asyncio
    async def test_exec_with_create_kind_returns_result(self):
        result = ResultSet()
        db = Database(FakeBackend(result))
        assert await db.exec("CREATE TABLE t (a INT)", None, StatementKind.CREATE) is result
        assert db.result is None


class TestSqliteVerbs:
    """Verbs against a real in-memory SQLite database."""

    @pytest.mark.asyncio
    async def test_create_succeeds(self, db):
        assert await db.create(PEOPLE_SCHEMA) is True
        assert await db.num_rows("SELECT * FROM people") == 0

    @pytest.mark.asyncio
    async def test_create_accepts_surrounding_whitespace(self, db):
        assert await db.create("\n   create table t (a INTEGER)  \n") is True
        assert db.last_statement.sql == "create table t (a INTEGER)"

    @pytest.mark.asyncio
    async def test_drop_succeeds(self, people):
        assert await people.drop("DROP TABLE people") is True
        assert await people.select("SELECT * FROM people") is False

    @pytest.mark.asyncio
    async def test_create_fails_through_driver(self, people):
        assert await people.create(PEOPLE_SCHEMA) is False
        assert "already exists" in people.error_state.message

    @pytest.mark.asyncio
    async def test_insert_returns_increasing_identifiers(self, db):
        await db.create("CREATE TABLE t (id INTEGER PRIMARY KEY AUTOINCREMENT, a INTEGER)")
        first = await db.insert("INSERT INTO t (a) VALUES (?)", [1])
        second = await db.insert("INSERT INTO t (a) VALUES (?)", [1])
        assert first > 0
        assert second > first
        assert db.affected_rows == 1

    @pytest.mark.asyncio
    async def test_update_counts_matched_rows(self, people):
        assert await people.update("UPDATE people SET age = age + 1") == 3

    @pytest.mark.asyncio
    async def test_update_without_match_returns_zero_not_false(self, people):
        changed = await people.update("UPDATE people SET age = 1 WHERE name = ?", ["nobody"])
        assert changed == 0
        assert changed is not False

    @pytest.mark.asyncio
    async def test_delete_counts_rows(self, people):
        assert await people.delete("DELETE FROM people WHERE age > ?", [40]) == 1
        assert await people.num_rows("SELECT * FROM people") == 2

    @pytest.mark.asyncio
    async def test_replace_overwrites_row(self, people):
        new_id = await people.replace(
            "REPLACE INTO people (id, name, age) VALUES (?, ?, ?)", [1, "ada", 37]
        )
        assert new_id == 1
        assert await people.getval("SELECT age FROM people WHERE id = 1") == 37

    @pytest.mark.asyncio
    async def test_insert_and_update_skip_keyword_check(self, people):
        # Leading keyword is not checked, so a CTE-prefixed update reaches the driver
        changed = await people.update(
            "WITH old AS (SELECT id FROM people WHERE age > 40)"
            " UPDATE people SET age = 0 WHERE id IN (SELECT id FROM old)"
        )
        assert changed == 1

    @pytest.mark.asyncio
    async def test_cte_prefixed_delete_returns_count(self, people):
        removed = await people.delete(
            "WITH young AS (SELECT id FROM people WHERE age < ?)"
            " DELETE FROM people WHERE id IN (SELECT id FROM young)",
            [40],
        )
        assert removed == 2
        assert people.affected_rows == 2


class TestErrorChannels:
    """Driver failures and validation failures land in separate fields."""

    @pytest.mark.asyncio
    async def test_validation_failure_sets_free_text_only(self, db):
        assert await db.create("DROP TABLE t") is False
        assert db.error_state.error == "Invalid SQL provided for the create command"
        assert db.error_state.code is None
        assert db.error_state.message is None
        assert isinstance(db.last_failure, ValidationFailure)

    @pytest.mark.asyncio
    async def test_drop_validation_message(self, db):
        assert await db.drop("DELETE FROM t") is False
        assert db.error_state.error == "Invalid SQL provided for the drop command"

    @pytest.mark.asyncio
    async def test_validation_failure_never_reaches_backend(self):
        backend = FakeBackend()
        db = Database(backend)
        await db.create("CREATEX TABLE t (a INT)")
        await db.drop("DROP")
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_driver_failure_sets_code_and_message(self, db):
        assert await db.select("SELEC broken") is False
        assert db.error_state.code is not None
        assert db.error_state.message
        assert db.error_state.trace
        assert db.error_state.error is None
        assert isinstance(db.last_failure, DriverFailure)

    @pytest.mark.asyncio
    async def test_constraint_violation_is_driver_failure(self, people):
        assert await people.insert("INSERT INTO people (name) VALUES (?)", ["ada"]) is False
        assert "UNIQUE" in people.error_state.message

    @pytest.mark.asyncio
    async def test_fake_driver_error_is_captured(self):
        db = Database(FakeBackend(error=DriverError("42P01", 'relation "t" does not exist')))
        assert await db.update("UPDATE t SET a = 1") is False
        assert db.error_state.code == "42P01"
        assert db.error_state.message == 'relation "t" does not exist'

    @pytest.mark.asyncio
    async def test_success_does_not_clear_previous_failure(self, people):
        await people.select("SELEC broken")
        code = people.error_state.code
        assert await people.select("SELECT 1") is not False
        assert people.error_state.code == code

    @pytest.mark.asyncio
    async def test_failed_select_keeps_current_result(self, people):
        result = await people.select("SELECT * FROM people")
        await people.select("SELEC broken")
        assert people.result is result

    @pytest.mark.asyncio
    async def test_instance_usable_after_failure(self, people):
        await people.insert("INSERT INTO missing (a) VALUES (1)")
        assert await people.num_rows("SELECT * FROM people") == 3
