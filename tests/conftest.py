"""
Pytest configuration and shared fixtures for handbook tests.

Provides:
- A fake asyncpg driver pool with a real capacity limit
- Mock connections and transactions
- A Pool wired to the fake driver, and an Executor/Database on top of it
- Sample rows for the handbook tables
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from handbook.core.database import Database
from handbook.core.executor import Executor
from handbook.core.pool import DatabaseConfig, Pool, PoolConfig, PoolHealthConfig, PoolState


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture(autouse=True)
def db_password(monkeypatch: pytest.MonkeyPatch) -> None:
    """Every config that reads DB_PASSWORD finds one."""
    monkeypatch.setenv("DB_PASSWORD", "test_password")


# ============================================================================
# Fake Driver
# ============================================================================


def make_connection() -> MagicMock:
    """Create a mock asyncpg connection with a controllable transaction."""
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=1)
    conn.execute = AsyncMock(return_value="OK")
    conn.executemany = AsyncMock()

    tx = MagicMock()
    tx.start = AsyncMock()
    tx.commit = AsyncMock()
    tx.rollback = AsyncMock()
    conn.transaction = MagicMock(return_value=tx)
    conn.tx = tx
    return conn


class _AcquireContext:
    """Mimics asyncpg's PoolAcquireContext: awaitable and an async context manager."""

    def __init__(self, pool: FakeDriverPool, timeout: float | None) -> None:
        self._pool = pool
        self._timeout = timeout
        self._conn: MagicMock | None = None

    def __await__(self) -> Any:
        return self._pool._acquire(self._timeout).__await__()

    async def __aenter__(self) -> MagicMock:
        self._conn = await self._pool._acquire(self._timeout)
        return self._conn

    async def __aexit__(self, *exc: Any) -> None:
        assert self._conn is not None
        await self._pool.release(self._conn)


class FakeDriverPool:
    """In-memory stand-in for ``asyncpg.Pool`` that enforces its capacity."""

    def __init__(self, capacity: int = 10) -> None:
        self.capacity = capacity
        self.connections = [make_connection() for _ in range(capacity)]
        self._free: asyncio.Queue[MagicMock] = asyncio.Queue()
        for conn in self.connections:
            self._free.put_nowait(conn)
        self.acquire_error: BaseException | None = None
        self.release_calls = 0
        self.close = AsyncMock()
        self.terminate = MagicMock()
        self.expire_connections = AsyncMock()

    @property
    def conn(self) -> MagicMock:
        """The connection handed out first (handy when only one is used)."""
        return self.connections[0]

    def acquire(self, *, timeout: float | None = None) -> _AcquireContext:
        return _AcquireContext(self, timeout)

    async def _acquire(self, timeout: float | None) -> MagicMock:
        if self.acquire_error is not None:
            raise self.acquire_error
        async with asyncio.timeout(timeout):
            return await self._free.get()

    async def release(self, conn: MagicMock) -> None:
        self.release_calls += 1
        self._free.put_nowait(conn)

    def get_size(self) -> int:
        return self.capacity

    @property
    def free_count(self) -> int:
        return self._free.qsize()


# ============================================================================
# Pool / Executor / Database Fixtures
# ============================================================================


@pytest.fixture
def pool_config() -> PoolConfig:
    """Pool configuration with background loops off and fast timeouts."""
    return PoolConfig(
        database=DatabaseConfig(host="localhost", database="test_db", user="test_user"),
        health=PoolHealthConfig(enabled=False),
        timeouts={"acquisition": 0.5, "connect": 1.0, "health_check": 0.5, "close": 0.5},
        retry={"max_attempts": 3, "initial_delay": 0.0, "max_delay": 0.0},
    )


@pytest.fixture
def driver() -> FakeDriverPool:
    return FakeDriverPool(capacity=10)


@pytest.fixture
def connected_pool(pool_config: PoolConfig, driver: FakeDriverPool) -> Pool:
    """A Pool already in the connected state on top of the fake driver."""
    pool = Pool(config=pool_config)
    pool._pool = driver  # type: ignore[assignment]
    pool._state = PoolState.CONNECTED
    return pool


@pytest.fixture
def executor(connected_pool: Pool) -> Executor:
    return Executor(connected_pool)


@pytest.fixture
def database(connected_pool: Pool) -> Database:
    return Database(pool=connected_pool)


# ============================================================================
# Executor Double for Repository Tests
# ============================================================================


@pytest.fixture
def mock_executor() -> MagicMock:
    """Executor double recording the SQL each repository method issues."""
    executor = MagicMock(spec=Executor)
    executor.fetch = AsyncMock(return_value=[])
    executor.fetchrow = AsyncMock(return_value=None)
    executor.fetchval = AsyncMock(return_value=0)
    executor.execute = AsyncMock(return_value="DELETE 1")

    conn = make_connection()

    async def run_transaction(callback: Any, options: Any = None) -> Any:
        return await callback(conn)

    executor.run_transaction = AsyncMock(side_effect=run_transaction)
    executor.transaction_conn = conn
    return executor


# ============================================================================
# Sample Rows
# ============================================================================


@pytest.fixture
def character_row() -> dict[str, Any]:
    return {
        "id": 1,
        "unique_key": "kasumi",
        "name_jp": "かすみ",
        "name_en": "Kasumi",
        "name_cn": "霞",
        "name_tw": "霞",
        "name_kr": "카스미",
        "birthday": datetime.date(1999, 2, 23),
        "height": 158,
        "measurements": "B89/W54/H85",
        "blood_type": "A",
        "voice_actor_jp": "Houko Kuwashima",
        "profile_image_url": None,
        "is_active": True,
        "game_version": "1.0",
    }


@pytest.fixture
def swimsuit_row() -> dict[str, Any]:
    return {
        "id": 10,
        "character_id": 1,
        "unique_key": "kasumi-blossom",
        "name_jp": "ブロッサム",
        "name_en": "Blossom",
        "name_cn": "花",
        "name_tw": "花",
        "name_kr": "블라썸",
        "description_en": None,
        "rarity": "SSR",
        "suit_type": "POW",
        "total_stats_awakened": 1250,
        "has_malfunction": True,
        "is_limited": True,
        "release_date_gl": datetime.date(2024, 3, 1),
        "game_version": "2.1",
    }


@pytest.fixture
def event_row() -> dict[str, Any]:
    return {
        "id": 5,
        "unique_key": "summer-festival",
        "name_jp": "夏祭り",
        "name_en": "Summer Festival",
        "name_cn": "夏日祭",
        "name_tw": "夏日祭",
        "name_kr": "여름 축제",
        "type": "FESTIVAL_RANKING",
        "start_date": datetime.date(2025, 7, 1),
        "end_date": datetime.date(2025, 7, 15),
        "is_active": True,
        "game_version": "2.5",
    }
