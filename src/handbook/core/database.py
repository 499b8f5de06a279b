"""
Database facade wiring the pool, executor and repositories together.

[Database][handbook.core.database.Database] is the one object the host
process constructs: it owns a [Pool][handbook.core.pool.Pool], an
[Executor][handbook.core.executor.Executor] with its transaction coordinator,
and a cache of repository instances sharing them.

Examples:
    ```python
    from handbook.core import Database
    from handbook.repositories import CharacterRepository

    async with Database.from_yaml("config/handbook.yaml") as db:
        characters = db.repository(CharacterRepository)
        page = await characters.search_text("kasumi")
        print(page.to_dict())
    ```
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, Field

from .executor import Executor, ExecutorConfig
from .logger import Logger
from .metrics import MetricsConfig
from .pool import LeakReport, Pool, PoolHealth, PoolStats, PoolStatus
from .repository import Repository, RepositoryConfig
from .transaction import TransactionConfig, TransactionOptions
from .yaml import load_yaml


if TYPE_CHECKING:
    import asyncpg

    from .transaction import TransactionCallback


T = TypeVar("T")
RepoT = TypeVar("RepoT", bound=Repository[Any])


class HandbookConfig(BaseModel):
    """Everything except the pool, which is configured under the ``pool`` key."""

    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    transactions: TransactionConfig = Field(default_factory=TransactionConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


class Database:
    """Owner of the data-access core for one process.

    Construction does no I/O; the pool initializes on
    [initialize()][handbook.core.database.Database.initialize], on context
    entry, or lazily on the first statement.
    """

    def __init__(self, pool: Pool | None = None, config: HandbookConfig | None = None) -> None:
        self._pool = pool or Pool()
        self._config = config or HandbookConfig()
        self._executor = Executor(
            self._pool, self._config.executor, transactions=self._config.transactions
        )
        self._repositories: dict[type[Repository[Any]], Repository[Any]] = {}
        self._logger = Logger("database")

    @classmethod
    def from_yaml(cls, config_path: str) -> Database:
        """Create a Database from a YAML file."""
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Database:
        """Create a Database from a dictionary.

        The ``pool`` key builds the [Pool][handbook.core.pool.Pool]; remaining
        keys are [HandbookConfig][handbook.core.database.HandbookConfig] fields.
        """
        pool = Pool.from_dict(config_dict["pool"]) if "pool" in config_dict else None
        rest = {k: v for k, v in config_dict.items() if k != "pool"}
        return cls(pool=pool, config=HandbookConfig(**rest) if rest else None)

    @property
    def pool(self) -> Pool:
        return self._pool

    @property
    def executor(self) -> Executor:
        return self._executor

    @property
    def config(self) -> HandbookConfig:
        return self._config

    def repository(self, repository_cls: type[RepoT]) -> RepoT:
        """Shared instance of *repository_cls* bound to this database."""
        repo = self._repositories.get(repository_cls)
        if repo is None:
            repo = repository_cls(self._executor, self._config.repository)
            self._repositories[repository_cls] = repo
        return repo  # type: ignore[return-value]

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    async def fetch(self, query: str, *args: Any, **kwargs: Any) -> list[asyncpg.Record]:
        return await self._executor.fetch(query, *args, **kwargs)

    async def fetchrow(self, query: str, *args: Any, **kwargs: Any) -> asyncpg.Record | None:
        return await self._executor.fetchrow(query, *args, **kwargs)

    async def fetchval(self, query: str, *args: Any, **kwargs: Any) -> Any:
        return await self._executor.fetchval(query, *args, **kwargs)

    async def execute(self, query: str, *args: Any, **kwargs: Any) -> str:
        return await self._executor.execute(query, *args, **kwargs)

    async def run_transaction(
        self,
        callback: TransactionCallback[T],
        options: TransactionOptions | None = None,
    ) -> T:
        return await self._executor.run_transaction(callback, options)

    # -------------------------------------------------------------------------
    # Lifecycle and Administration
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        await self._pool.initialize()

    async def close(self) -> None:
        await self._pool.close()

    async def force_reconnect(self) -> None:
        await self._pool.force_reconnect()

    async def health_check(self) -> PoolHealth:
        return await self._pool.health_check()

    def stats(self) -> PoolStats:
        return self._pool.stats()

    def detect_leaks(self) -> LeakReport:
        return self._pool.detect_leaks()

    def status(self) -> PoolStatus:
        return self._pool.status()

    async def health_report(
        self,
        repositories: Sequence[type[Repository[Any]]] = (),
    ) -> dict[str, Any]:
        """Pool health plus every repository's table check, run concurrently.

        Returns:
            ``{"healthy": bool, "pool": {...}, "tables": [{...}, ...]}``;
            healthy only when the pool and every table are.
        """
        pool_health = await self._pool.health_check()
        tables = await asyncio.gather(
            *(self.repository(cls).health_check() for cls in repositories)
        )
        healthy = pool_health.healthy and all(t.healthy for t in tables)
        if not healthy:
            self._logger.warning(
                "health_report_unhealthy",
                pool_error=pool_health.error,
                failing_tables=",".join(t.table for t in tables if not t.healthy),
            )
        return {
            "healthy": healthy,
            "pool": pool_health.to_dict(),
            "tables": [t.to_dict() for t in tables],
        }

    async def __aenter__(self) -> Database:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"Database(pool={self._pool!r})"
