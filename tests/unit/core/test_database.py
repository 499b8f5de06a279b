"""
Unit tests for core.database module.

Tests:
- HandbookConfig and construction from dict/YAML
- Repository instance caching
- Statement and lifecycle delegation
- health_report aggregation
"""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from handbook.core.database import Database, HandbookConfig
from handbook.core.pool import PoolState
from handbook.core.repository import RepositoryHealth
from handbook.repositories import CharacterRepository, EventRepository


class TestHandbookConfig:
    """HandbookConfig defaults and validation."""

    def test_defaults(self):
        config = HandbookConfig()
        assert config.executor.query_timeout == 30.0
        assert config.transactions.max_retries == 3
        assert config.repository.max_page_size == 100
        assert config.metrics.enabled is False

    def test_nested_validation(self):
        with pytest.raises(ValidationError):
            HandbookConfig(repository={"default_page_size": 0})


class TestConstruction:
    """from_dict() and from_yaml()."""

    def test_from_dict(self):
        db = Database.from_dict(
            {
                "pool": {"database": {"host": "db.internal", "database": "handbook"}},
                "executor": {"query_timeout": 5.0},
                "repository": {"max_page_size": 50},
            }
        )
        assert db.pool.config.database.host == "db.internal"
        assert db.executor.config.query_timeout == 5.0
        assert db.config.repository.max_page_size == 50
        assert db.pool.state is PoolState.DISCONNECTED

    def test_from_empty_dict(self):
        db = Database.from_dict({})
        assert db.config == HandbookConfig()

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "handbook.yaml"
        path.write_text("pool:\n  limits:\n    min_size: 1\n    max_size: 4\n")
        db = Database.from_yaml(str(path))
        assert db.pool.config.limits.max_size == 4

    def test_missing_password(self, monkeypatch):
        monkeypatch.delenv("DB_PASSWORD")
        with pytest.raises(ValidationError, match="DB_PASSWORD"):
            Database.from_dict({"pool": {}})


class TestRepositories:
    """repository() caching."""

    def test_same_instance(self, database):
        assert database.repository(CharacterRepository) is database.repository(CharacterRepository)

    def test_shares_executor_and_config(self, database):
        repo = database.repository(EventRepository)
        assert repo._executor is database.executor
        assert repo.config is database.config.repository


class TestDelegation:
    """Statements and lifecycle go to the executor and pool."""

    @pytest.mark.asyncio
    async def test_fetchval(self, database, driver):
        driver.conn.fetchval.return_value = 9
        assert await database.fetchval("SELECT COUNT(*) FROM skills") == 9

    @pytest.mark.asyncio
    async def test_run_transaction(self, database, driver):
        async def work(conn):
            await conn.execute("UPDATE items SET rarity = $1", "SR")
            return "done"

        assert await database.run_transaction(work) == "done"
        driver.conn.tx.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, database):
        async with database as db:
            assert db.pool.is_connected
        assert database.pool.state is PoolState.CLOSED

    def test_introspection(self, database):
        assert database.stats().capacity == database.pool.config.limits.max_size
        assert database.status().state is PoolState.CONNECTED
        assert database.detect_leaks().has_leaks is False


class TestHealthReport:
    """health_report() combines pool and table checks."""

    @pytest.mark.asyncio
    async def test_all_healthy(self, database):
        report = await database.health_report([CharacterRepository, EventRepository])
        assert report["healthy"] is True
        assert report["pool"]["healthy"] is True
        assert [t["table"] for t in report["tables"]] == ["characters", "events"]

    @pytest.mark.asyncio
    async def test_failing_table(self, database):
        events = database.repository(EventRepository)
        events.health_check = AsyncMock(
            return_value=RepositoryHealth(healthy=False, table="events", error="missing")
        )
        report = await database.health_report([CharacterRepository, EventRepository])
        assert report["healthy"] is False
        assert report["tables"][1]["error"] == "missing"

    @pytest.mark.asyncio
    async def test_pool_only(self, database):
        report = await database.health_report()
        assert report["healthy"] is True
        assert report["tables"] == []
