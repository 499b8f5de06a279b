"""
Transaction coordination with bounded deadlock retry.

A unit of work is an async callback that receives a connection with an
open transaction. [TransactionCoordinator.run()][handbook.core.transaction.TransactionCoordinator.run]
commits when the callback returns, rolls back when it raises, and re-runs
the whole callback on a fresh connection when the server aborted it to
break a deadlock.

Each attempt walks the states of
[TransactionState][handbook.core.transaction.TransactionState]:

```text
acquiring -> begun -> running -> committing -> done
                 any failure after begin -> rolling_back -> done
```

Examples:
    ```python
    async def transfer(conn):
        await executor.execute("UPDATE items SET ...", 1, conn=conn)
        await executor.execute("UPDATE items SET ...", 2, conn=conn)

    await coordinator.run(transfer, TransactionOptions(isolation=IsolationLevel.SERIALIZABLE))
    ```
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from .exceptions import (
    ConnectionLostError,
    DeadlockError,
    TransactionRetryExhaustedError,
    TransactionTimeoutError,
    classify_error,
)
from .logger import Logger
from .metrics import TRANSACTION_RETRIES


if TYPE_CHECKING:
    import asyncpg

    from .pool import Pool


T = TypeVar("T")

TransactionCallback = Callable[["asyncpg.Connection[asyncpg.Record]"], Awaitable[T]]


class IsolationLevel(StrEnum):
    """Transaction isolation levels, named as asyncpg expects them."""

    READ_UNCOMMITTED = "read_uncommitted"
    READ_COMMITTED = "read_committed"
    REPEATABLE_READ = "repeatable_read"
    SERIALIZABLE = "serializable"


class TransactionState(StrEnum):
    """Progress of a single transaction attempt."""

    ACQUIRING = "acquiring"
    BEGUN = "begun"
    RUNNING = "running"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling_back"
    DONE = "done"


class TransactionConfig(BaseModel):
    """Defaults applied to every transaction unless overridden per call.

    Note:
        The retry backoff after the n-th deadlock is
        ``min(backoff_base * 2^n, backoff_cap)``: 0.2s, 0.4s, 0.8s with the
        defaults.
    """

    isolation: IsolationLevel | None = Field(
        default=None, description="Isolation level (None = server default)"
    )
    timeout: float = Field(default=30.0, ge=0.1, description="Callback time budget (seconds)")
    retry_on_deadlock: bool = Field(default=True, description="Re-run deadlocked transactions")
    max_retries: int = Field(default=3, ge=0, le=10, description="Retries after the first attempt")
    backoff_base: float = Field(default=0.1, ge=0.0, description="Retry backoff base (seconds)")
    backoff_cap: float = Field(default=1.0, ge=0.0, description="Retry backoff cap (seconds)")

    @field_validator("backoff_cap")
    @classmethod
    def validate_backoff_cap(cls, v: float, info: ValidationInfo) -> float:
        """Ensure backoff_cap >= backoff_base."""
        base = info.data.get("backoff_base", 0.1)
        if v < base:
            raise ValueError(f"backoff_cap ({v}) must be >= backoff_base ({base})")
        return v


@dataclass(frozen=True, slots=True)
class TransactionOptions:
    """Per-call overrides; ``None`` fields fall back to [TransactionConfig][handbook.core.transaction.TransactionConfig]."""

    isolation: IsolationLevel | None = None
    timeout: float | None = None
    retry_on_deadlock: bool | None = None
    max_retries: int | None = None
    readonly: bool = False


@dataclass(frozen=True, slots=True)
class DeadlockRetryPolicy:
    """Bounded retry decision for deadlocked transactions."""

    enabled: bool = True
    max_retries: int = 3
    base: float = 0.1
    cap: float = 1.0

    def should_retry(self, error: BaseException, retries_done: int) -> bool:
        """Whether another attempt is allowed after *error*."""
        return (
            self.enabled
            and isinstance(error, DeadlockError)
            and not isinstance(error, TransactionRetryExhaustedError)
            and retries_done < self.max_retries
        )

    def delay(self, retry: int) -> float:
        """Backoff before the given 1-based retry."""
        return float(min(self.base * (2**retry), self.cap))


class TransactionCoordinator:
    """Runs callbacks inside transactions, retrying deadlocks.

    At most ``max_retries + 1`` attempts are made. Every attempt uses its own
    connection, released exactly once whatever the outcome.
    """

    def __init__(self, pool: Pool, config: TransactionConfig | None = None) -> None:
        self._pool = pool
        self._config = config or TransactionConfig()
        self._logger = Logger("transaction")

    @property
    def config(self) -> TransactionConfig:
        return self._config

    def policy(self, options: TransactionOptions | None = None) -> DeadlockRetryPolicy:
        """Build the retry policy for one call."""
        options = options or TransactionOptions()
        enabled = options.retry_on_deadlock
        max_retries = options.max_retries
        return DeadlockRetryPolicy(
            enabled=self._config.retry_on_deadlock if enabled is None else enabled,
            max_retries=self._config.max_retries if max_retries is None else max_retries,
            base=self._config.backoff_base,
            cap=self._config.backoff_cap,
        )

    async def run(
        self,
        callback: TransactionCallback[T],
        options: TransactionOptions | None = None,
    ) -> T:
        """Run *callback* in a transaction and return its result.

        Args:
            callback: Coroutine function receiving the transaction's connection.
            options: Per-call overrides.

        Returns:
            Whatever the callback returned, after a successful commit.

        Raises:
            TransactionRetryExhaustedError: If every allowed attempt deadlocked.
            TransactionTimeoutError: If the callback exceeded its timeout.
            DatabaseError: Any other classified failure, after rollback.
        """
        options = options or TransactionOptions()
        policy = self.policy(options)
        retries = 0

        while True:
            try:
                return await self._attempt(callback, options, attempt=retries + 1)
            except DeadlockError as e:
                if policy.should_retry(e, retries):
                    retries += 1
                    delay = policy.delay(retries)
                    TRANSACTION_RETRIES.inc()
                    self._logger.warning(
                        "transaction_deadlock_retry",
                        retry=retries,
                        max_retries=policy.max_retries,
                        delay=delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                if not policy.enabled or isinstance(e, TransactionRetryExhaustedError):
                    raise
                self._logger.error("transaction_retries_exhausted", attempts=retries + 1)
                raise TransactionRetryExhaustedError(
                    f"transaction deadlocked {retries + 1} times",
                    attempts=retries + 1,
                    operation="transaction",
                ) from e

    async def _attempt(
        self,
        callback: TransactionCallback[T],
        options: TransactionOptions,
        *,
        attempt: int,
    ) -> T:
        isolation = options.isolation or self._config.isolation
        timeout = options.timeout if options.timeout is not None else self._config.timeout
        state = TransactionState.ACQUIRING
        started = time.monotonic()

        async with self._pool.acquire() as conn:
            tx = conn.transaction(
                isolation=str(isolation) if isolation else None,
                readonly=options.readonly,
            )
            deadline: asyncio.Timeout | None = None
            try:
                await tx.start()
                state = TransactionState.BEGUN
                deadline = asyncio.timeout(timeout)
                async with deadline:
                    state = TransactionState.RUNNING
                    result = await callback(conn)
                state = TransactionState.COMMITTING
                await tx.commit()
            except BaseException as e:
                failed_in = state
                if failed_in is not TransactionState.ACQUIRING:
                    state = TransactionState.ROLLING_BACK
                    await self._rollback(tx)
                state = TransactionState.DONE
                if not isinstance(e, Exception):
                    raise

                if deadline is not None and deadline.expired():
                    error: BaseException = TransactionTimeoutError(
                        f"transaction exceeded {timeout}s", operation="transaction"
                    )
                else:
                    error = classify_error(e, operation="transaction")
                if isinstance(error, ConnectionLostError):
                    self._pool.mark_disconnected(str(e))

                self._logger.warning(
                    "transaction_rolled_back",
                    attempt=attempt,
                    failed_in=failed_in,
                    error_type=type(error).__name__,
                    error=str(error),
                )
                if error is e:
                    raise
                raise error from e

        self._logger.debug(
            "transaction_committed",
            attempt=attempt,
            elapsed=round(time.monotonic() - started, 4),
        )
        return result

    async def _rollback(self, tx: asyncpg.transaction.Transaction) -> None:
        try:
            await tx.rollback()
        except Exception as e:  # Intentionally broad: the original failure is what the caller sees
            self._logger.warning("transaction_rollback_failed", error=str(e))
