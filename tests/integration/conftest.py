"""Integration test fixtures providing ephemeral PostgreSQL via testcontainers.

The PostgresContainer is session-scoped to avoid the Docker startup per test.
The schema is re-created per test (function-scoped ``db`` fixture) for isolation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import asyncpg
import pytest
from pydantic import SecretStr
from testcontainers.postgres import PostgresContainer

from handbook.core.database import Database
from handbook.core.pool import DatabaseConfig, Pool, PoolConfig, PoolHealthConfig, PoolLimitsConfig


SCHEMA_DIR = Path(__file__).parent.parent.parent / "deployments" / "postgres" / "init"


# ---------------------------------------------------------------------------
# Session-scoped container
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Spawn an ephemeral PostgreSQL 16 container for the test session."""
    container = PostgresContainer("postgres:16-alpine")
    try:
        container.start()
    except Exception as e:  # Intentionally broad: no Docker daemon means no integration run
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def pg_dsn(pg_container: PostgresContainer) -> dict[str, Any]:
    """Extract connection parameters from the running container."""
    return {
        "host": pg_container.get_container_host_ip(),
        "port": int(pg_container.get_exposed_port(5432)),
        "database": pg_container.dbname,
        "user": pg_container.username,
        "password": pg_container.password,
    }


# ---------------------------------------------------------------------------
# Function-scoped Database with fresh schema
# ---------------------------------------------------------------------------


@pytest.fixture
async def db(pg_dsn: dict[str, Any]):
    """A Database backed by a real PostgreSQL with a freshly created schema."""
    conn = await asyncpg.connect(**pg_dsn)
    try:
        await conn.execute("DROP SCHEMA public CASCADE")
        await conn.execute("CREATE SCHEMA public")
        for sql_file in sorted(SCHEMA_DIR.glob("*.sql")):
            await conn.execute(sql_file.read_text())
    finally:
        await conn.close()

    config = PoolConfig(
        database=DatabaseConfig(
            host=pg_dsn["host"],
            port=pg_dsn["port"],
            database=pg_dsn["database"],
            user=pg_dsn["user"],
            password=SecretStr(pg_dsn["password"]),
        ),
        limits=PoolLimitsConfig(min_size=1, max_size=5),
        health=PoolHealthConfig(enabled=False, expected_tables=["characters", "events"]),
    )
    async with Database(pool=Pool(config=config)) as database:
        yield database

