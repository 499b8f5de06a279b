"""
Guarded statement execution.

Every statement the application issues goes through an
[Executor][handbook.core.executor.Executor]: it makes sure the pool is
initialized, checks a connection out under the acquisition timeout, runs the
statement under the execution timeout, and always gives the connection back.
Failures are converted to the handbook taxonomy here and nowhere else.

Timing goes to three places: the Prometheus latency histogram, the in-memory
[QueryTracker][handbook.core.metrics.QueryTracker], and a ``slow_query``
warning when a statement takes longer than the configured threshold.
Statement text is logged as a truncated single-line preview; parameter values
are never logged, only their count.

Single statements are not retried: the caller decides whether a
[TransientError][handbook.core.exceptions.TransientError] is worth another
attempt. Multi-statement work goes through
[run_transaction()][handbook.core.executor.Executor.run_transaction].
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Literal, TypeVar, cast

from pydantic import BaseModel, Field

from .exceptions import ConnectionLostError, ContentionError, DatabaseError, classify_error
from .logger import Logger
from .metrics import (
    DATABASE_ERRORS,
    QUERY_DURATION_SECONDS,
    QueryStats,
    QueryTracker,
    analyze_statement,
    preview_statement,
)
from .transaction import TransactionConfig, TransactionCoordinator, TransactionOptions


if TYPE_CHECKING:
    import asyncpg

    from .pool import Pool
    from .transaction import TransactionCallback


T = TypeVar("T")

Operation = Literal["fetch", "fetchrow", "fetchval", "execute", "executemany"]


class ExecutorConfig(BaseModel):
    """Execution timeouts and slow-statement reporting."""

    query_timeout: float = Field(default=30.0, ge=0.1, description="Execution timeout (seconds)")
    acquisition_timeout: float | None = Field(
        default=None, ge=0.1, description="Override the pool's acquisition timeout"
    )
    slow_query_threshold: float = Field(
        default=1.0, ge=0.0, description="Warn about statements slower than this (seconds)"
    )
    statement_preview_length: int = Field(
        default=100, ge=10, description="Characters of statement text included in logs"
    )
    tracker_max_entries: int = Field(
        default=500, ge=1, description="Distinct statements kept by the query tracker"
    )


class Executor:
    """Runs statements against a [Pool][handbook.core.pool.Pool] with guards.

    Every query method accepts ``conn=`` to run on a connection the caller
    already holds (inside a transaction callback). The statement is then
    timed and classified the same way but no connection is acquired.

    Examples:
        ```python
        executor = Executor(pool)
        rows = await executor.fetch("SELECT id, name_en FROM characters WHERE is_active = $1", True)

        async def work(conn):
            await executor.execute("DELETE FROM events WHERE id = $1", 7, conn=conn)

        await executor.run_transaction(work)
        ```
    """

    def __init__(
        self,
        pool: Pool,
        config: ExecutorConfig | None = None,
        *,
        transactions: TransactionConfig | None = None,
    ) -> None:
        self._pool = pool
        self._config = config or ExecutorConfig()
        self._tracker = QueryTracker(
            max_entries=self._config.tracker_max_entries,
            slow_threshold=self._config.slow_query_threshold,
        )
        self._coordinator = TransactionCoordinator(pool, transactions)
        self._logger = Logger("executor")

    @property
    def pool(self) -> Pool:
        return self._pool

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    @property
    def tracker(self) -> QueryTracker:
        return self._tracker

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def _run(
        self,
        operation: Operation,
        query: str,
        args: tuple[Any, ...],
        *,
        timeout: float | None,  # noqa: ASYNC109
        conn: asyncpg.Connection[asyncpg.Record] | None,
        table: str | None,
        **kwargs: Any,
    ) -> Any:
        budget = self._config.query_timeout if timeout is None else timeout
        started = time.monotonic()
        try:
            if conn is not None:
                result = await getattr(conn, operation)(query, *args, timeout=budget, **kwargs)
            else:
                async with self._pool.acquire(self._config.acquisition_timeout) as held:
                    result = await getattr(held, operation)(query, *args, timeout=budget, **kwargs)
        except Exception as e:  # Intentionally broad: classified below, non-database errors re-raised as-is
            elapsed = time.monotonic() - started
            error = classify_error(e, operation=operation, table=table)
            self._observe(operation, query, elapsed, failed=True)
            if isinstance(error, DatabaseError):
                self._report_failure(error, query, args, elapsed)
            if isinstance(error, ConnectionLostError):
                self._pool.mark_disconnected(str(e))
            if error is e:
                raise
            raise error from e

        elapsed = time.monotonic() - started
        self._observe(operation, query, elapsed, failed=False)
        if elapsed > self._config.slow_query_threshold:
            self._logger.warning(
                "slow_query",
                operation=operation,
                table=table,
                elapsed_ms=round(elapsed * 1000, 1),
                param_count=len(args),
                statement=preview_statement(query, self._config.statement_preview_length),
                hints="; ".join(analyze_statement(query, elapsed)) or None,
            )
        return result

    def _observe(self, operation: str, query: str, elapsed: float, *, failed: bool) -> None:
        QUERY_DURATION_SECONDS.labels(operation=operation).observe(elapsed)
        self._tracker.record(query, elapsed, failed=failed)

    def _report_failure(
        self,
        error: DatabaseError,
        query: str,
        args: tuple[Any, ...],
        elapsed: float,
    ) -> None:
        DATABASE_ERRORS.labels(error=type(error).__name__).inc()
        fields = {
            **error.context(),
            "error_type": type(error).__name__,
            "error": str(error),
            "elapsed_ms": round(elapsed * 1000, 1),
            "param_count": len(args),
            "statement": preview_statement(query, self._config.statement_preview_length),
        }
        # Contention is expected under load and usually retried by the caller
        if isinstance(error, ContentionError):
            self._logger.warning("query_contention", **fields)
        else:
            self._logger.error("query_failed", **fields)

    async def fetch(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
        table: str | None = None,
    ) -> list[asyncpg.Record]:
        """Run a query and return all rows."""
        result = await self._run("fetch", query, args, timeout=timeout, conn=conn, table=table)
        return cast("list[asyncpg.Record]", result)

    async def fetchrow(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
        table: str | None = None,
    ) -> asyncpg.Record | None:
        """Run a query and return the first row, or None."""
        result = await self._run("fetchrow", query, args, timeout=timeout, conn=conn, table=table)
        return cast("asyncpg.Record | None", result)

    async def fetchval(
        self,
        query: str,
        *args: Any,
        column: int = 0,
        timeout: float | None = None,  # noqa: ASYNC109
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
        table: str | None = None,
    ) -> Any:
        """Run a query and return one value of the first row, or None."""
        return await self._run(
            "fetchval", query, args, timeout=timeout, conn=conn, table=table, column=column
        )

    async def execute(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
        table: str | None = None,
    ) -> str:
        """Run a statement and return its status tag (e.g. ``"UPDATE 1"``)."""
        result = await self._run("execute", query, args, timeout=timeout, conn=conn, table=table)
        return cast("str", result)

    async def executemany(
        self,
        query: str,
        records: list[tuple[Any, ...]],
        *,
        timeout: float | None = None,  # noqa: ASYNC109
        conn: asyncpg.Connection[asyncpg.Record] | None = None,
        table: str | None = None,
    ) -> None:
        """Run one statement once per parameter tuple."""
        await self._run("executemany", query, (records,), timeout=timeout, conn=conn, table=table)

    async def run_transaction(
        self,
        callback: TransactionCallback[T],
        options: TransactionOptions | None = None,
    ) -> T:
        """Run *callback* in a transaction with deadlock retry.

        See [TransactionCoordinator.run()][handbook.core.transaction.TransactionCoordinator.run].
        """
        return await self._coordinator.run(callback, options)

    def slow_queries(self, limit: int = 10) -> list[QueryStats]:
        """Tracked statements, slowest average first."""
        return self._tracker.snapshot(limit)
