"""
Async PostgreSQL connection pool manager built on asyncpg.

Owns the bounded set of live connections shared by every caller in the
process. Initialization retries with capped exponential backoff, a
background loop checks the database and schedules reconnects, a second loop
samples occupancy and warns about saturation, and shutdown drains within a
timeout before terminating what is left.

The pool tracks its own ``in_use`` and ``waiting`` counters around each
checkout so [stats()][handbook.core.pool.Pool.stats] always satisfies
``in_use + free <= capacity``.

Examples:
    ```python
    pool = Pool.from_yaml("config.yaml")

    async with pool:
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        print(pool.stats())
    ```

See Also:
    [Executor][handbook.core.executor.Executor]: Runs statements through
        this pool with timeouts and error classification.
    [PoolConfig][handbook.core.pool.PoolConfig]: Aggregate configuration.
"""

from __future__ import annotations

import asyncio
import datetime
import json
import os
import time
from collections.abc import AsyncIterator  # noqa: TC003
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

import asyncpg
from pydantic import BaseModel, Field, SecretStr, ValidationInfo, field_validator, model_validator

from .exceptions import (
    AcquisitionTimeoutError,
    ConfigurationError,
    ConnectionLostError,
    PoolClosedError,
    classify_error,
    is_fatal_connect_error,
)
from .logger import Logger
from .metrics import POOL_CONNECTIONS
from .yaml import load_yaml


_CONNECT_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)


def _json_encode(value: Any) -> str:
    """Encode a Python value for a JSON/JSONB column; strings pass through as-is."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


async def _init_connection(conn: asyncpg.Connection[asyncpg.Record]) -> None:
    """Register JSON/JSONB codecs on every new connection.

    ``documents.content_json_en``, ``update_logs.metrics`` and the screenshot
    lists round-trip as Python objects without manual ``json.loads()``.
    """
    for type_name in ("jsonb", "json"):
        await conn.set_type_codec(
            type_name,
            encoder=_json_encode,
            decoder=json.loads,
            schema="pg_catalog",
        )


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class DatabaseConfig(BaseModel):
    """PostgreSQL connection parameters.

    The password is read from the environment variable named by
    ``password_env`` (default: ``DB_PASSWORD``), never from configuration
    files.
    """

    host: str = Field(default="localhost", min_length=1, description="Database hostname")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    database: str = Field(default="handbook", min_length=1, description="Database name")
    user: str = Field(default="handbook", min_length=1, description="Database user")
    password_env: str = Field(
        default="DB_PASSWORD",  # pragma: allowlist secret
        min_length=1,
        description="Environment variable holding the database password",
    )
    password: SecretStr = Field(description="Database password (loaded from password_env)")

    @model_validator(mode="before")
    @classmethod
    def resolve_password(cls, data: Any) -> Any:
        """Resolve the password from the environment when not given explicitly."""
        if isinstance(data, dict) and "password" not in data:
            env_var = data.get("password_env", "DB_PASSWORD")  # pragma: allowlist secret
            value = os.getenv(env_var)
            if not value:
                raise ValueError(f"{env_var} environment variable not set")
            data = {**data, "password": SecretStr(value)}
        return data


class PoolLimitsConfig(BaseModel):
    """Pool size and connection recycling.

    ``max_size`` is the pool capacity: no more than this many connections
    are ever live at once.
    """

    min_size: int = Field(default=2, ge=0, le=100, description="Connections opened eagerly")
    max_size: int = Field(default=10, ge=1, le=200, description="Pool capacity")
    max_queries: int = Field(default=50_000, ge=100, description="Queries before recycling")
    max_inactive_connection_lifetime: float = Field(
        default=300.0, ge=0.0, description="Idle timeout (seconds)"
    )

    @field_validator("max_size")
    @classmethod
    def validate_max_size(cls, v: int, info: ValidationInfo) -> int:
        """Ensure max_size >= min_size."""
        min_size = info.data.get("min_size", 2)
        if v < min_size:
            raise ValueError(f"max_size ({v}) must be >= min_size ({min_size})")
        return v


class PoolTimeoutsConfig(BaseModel):
    """Timeouts for pool operations (in seconds)."""

    acquisition: float = Field(default=60.0, ge=0.1, description="Wait for a free connection")
    connect: float = Field(default=30.0, ge=0.1, description="Open a connection and test it")
    health_check: float = Field(default=5.0, ge=0.1, description="Background health check budget")
    close: float = Field(default=15.0, ge=0.1, description="Drain budget before terminating")


class PoolRetryConfig(BaseModel):
    """Backoff between failed initialization attempts.

    Exponential: ``initial_delay * 2^(n-1)`` after the n-th failure, capped
    at ``max_delay``. Linear: ``initial_delay * n``, same cap.
    """

    max_attempts: int = Field(default=5, ge=1, le=20, description="Initialization attempts")
    initial_delay: float = Field(default=5.0, ge=0.0, description="Delay after the first failure")
    max_delay: float = Field(default=30.0, ge=0.0, description="Delay cap")
    exponential_backoff: bool = Field(default=True, description="Use exponential backoff")

    @field_validator("max_delay")
    @classmethod
    def validate_max_delay(cls, v: float, info: ValidationInfo) -> float:
        """Ensure max_delay >= initial_delay."""
        initial_delay = info.data.get("initial_delay", 5.0)
        if v < initial_delay:
            raise ValueError(f"max_delay ({v}) must be >= initial_delay ({initial_delay})")
        return v


class PoolHealthConfig(BaseModel):
    """Background health probing and occupancy monitoring.

    Note:
        A failed health check moves the pool to ``degraded`` and schedules a
        reconnect after ``reconnect_delay``; work keeps being accepted in
        the meantime. ``expected_tables`` only produces a warning when a
        table is missing: schema management belongs to the migration tool.
    """

    enabled: bool = Field(default=True, description="Run the background loops")
    interval: float = Field(default=30.0, ge=0.1, description="Seconds between health checks")
    slow_threshold: float = Field(default=5.0, ge=0.0, description="Warn above this check duration")
    reconnect_delay: float = Field(default=5.0, ge=0.0, description="Wait before reconnecting")
    monitor_interval: float = Field(default=60.0, ge=0.1, description="Seconds between samples")
    high_usage_ratio: float = Field(default=0.8, gt=0.0, le=1.0, description="Usage warning")
    queue_warning_threshold: int = Field(default=5, ge=0, description="Waiting callers warning")
    leak_ratio: float = Field(default=0.9, gt=0.0, le=1.0, description="Leak suspicion ratio")
    expected_tables: list[str] = Field(
        default_factory=list, description="Tables whose absence is reported at startup"
    )


class ServerSettingsConfig(BaseModel):
    """PostgreSQL session settings sent with every new connection.

    ``statement_timeout`` is in milliseconds and is a server-side safety net
    behind the client-side execution timeout.
    """

    application_name: str = Field(default="handbook", description="Application name")
    timezone: str = Field(default="UTC", description="Session timezone")
    statement_timeout: int = Field(
        default=60_000, ge=0, description="Server statement timeout in ms (0=unlimited)"
    )
    lock_timeout: int = Field(
        default=10_000, ge=0, description="Server lock wait timeout in ms (0=unlimited)"
    )


class PoolConfig(BaseModel):
    """Aggregate configuration for the [Pool][handbook.core.pool.Pool]."""

    database: DatabaseConfig = Field(default_factory=lambda: DatabaseConfig.model_validate({}))
    limits: PoolLimitsConfig = Field(default_factory=PoolLimitsConfig)
    timeouts: PoolTimeoutsConfig = Field(default_factory=PoolTimeoutsConfig)
    retry: PoolRetryConfig = Field(default_factory=PoolRetryConfig)
    health: PoolHealthConfig = Field(default_factory=PoolHealthConfig)
    server_settings: ServerSettingsConfig = Field(default_factory=ServerSettingsConfig)


# ---------------------------------------------------------------------------
# State and Reports
# ---------------------------------------------------------------------------


class PoolState(StrEnum):
    """Lifecycle state of a [Pool][handbook.core.pool.Pool].

    ``closed`` is terminal: no transition leaves it.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DEGRADED = "degraded"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class PoolStats:
    """Point-in-time occupancy snapshot.

    Attributes:
        capacity: Maximum live connections.
        live: Connections currently open.
        free: Open connections not checked out.
        in_use: Connections checked out by callers.
        waiting: Callers blocked waiting for a connection.
    """

    capacity: int
    live: int
    free: int
    in_use: int
    waiting: int

    @property
    def usage_ratio(self) -> float:
        return self.in_use / self.capacity if self.capacity else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "usage_ratio": round(self.usage_ratio, 3)}


@dataclass(frozen=True, slots=True)
class LeakReport:
    """Result of [Pool.detect_leaks()][handbook.core.pool.Pool.detect_leaks]."""

    has_leaks: bool
    stats: PoolStats
    warning: str | None = None


@dataclass(frozen=True, slots=True)
class PoolHealth:
    """Result of [Pool.health_check()][handbook.core.pool.Pool.health_check].

    Attributes:
        healthy: Whether the check succeeded within its timeout.
        response_time: Check duration in seconds.
        error: Failure text when unhealthy.
        timestamp: When the check finished (UTC).
        stats: Occupancy at that moment.
    """

    healthy: bool
    response_time: float
    error: str | None
    timestamp: datetime.datetime
    stats: PoolStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "response_time": round(self.response_time, 4),
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class PoolStatus:
    """Administrative view returned by [Pool.status()][handbook.core.pool.Pool.status]."""

    state: PoolState
    attempts: int
    last_error: str | None
    stats: PoolStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": str(self.state),
            "attempts": self.attempts,
            "last_error": self.last_error,
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ConnectionAttempt:
    """One failed initialization attempt; logged, never retained."""

    attempt: int
    error: str
    elapsed: float


# ---------------------------------------------------------------------------
# Pool Class
# ---------------------------------------------------------------------------


class Pool:
    """Bounded asyncpg connection pool with lifecycle, health and monitoring.

    Construction does no I/O. [initialize()][handbook.core.pool.Pool.initialize]
    (or the async context manager) opens the driver pool; the
    [Executor][handbook.core.executor.Executor] initializes lazily on first
    use through [ensure_initialized()][handbook.core.pool.Pool.ensure_initialized].

    Examples:
        ```python
        pool = Pool(PoolConfig(limits=PoolLimitsConfig(max_size=10)))
        await pool.initialize()
        async with pool.acquire() as conn:
            rows = await conn.fetch("SELECT id FROM characters")
        await pool.close()
        ```

    See Also:
        [Executor][handbook.core.executor.Executor]: Statement execution
            on top of this pool.
        [PoolConfig][handbook.core.pool.PoolConfig]: Configuration model.
    """

    def __init__(self, config: PoolConfig | None = None) -> None:
        """Create a disconnected pool.

        Args:
            config: Pool configuration. Defaults read ``DB_PASSWORD`` from
                the environment.
        """
        self._config = config or PoolConfig()
        self._pool: asyncpg.Pool[asyncpg.Record] | None = None
        self._state = PoolState.DISCONNECTED
        self._lock = asyncio.Lock()
        self._in_use = 0
        self._waiting = 0
        self._attempts = 0
        self._last_error: str | None = None
        self._health_task: asyncio.Task[None] | None = None
        self._monitor_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._logger = Logger("pool")

    @classmethod
    def from_yaml(cls, config_path: str) -> Pool:
        """Create a Pool from a YAML file (see [load_yaml()][handbook.core.yaml.load_yaml])."""
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Pool:
        """Create a Pool from a dictionary matching [PoolConfig][handbook.core.pool.PoolConfig]."""
        return cls(config=PoolConfig(**config_dict))

    def _retry_delay(self, attempt: int) -> float:
        """Backoff to wait after the given 1-based failed attempt."""
        retry = self._config.retry
        if retry.exponential_backoff:
            delay = retry.initial_delay * (2 ** (attempt - 1))
        else:
            delay = retry.initial_delay * attempt
        return float(min(delay, retry.max_delay))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def _create_driver_pool(self) -> asyncpg.Pool[asyncpg.Record]:
        db = self._config.database
        limits = self._config.limits
        settings = self._config.server_settings
        return await asyncpg.create_pool(
            host=db.host,
            port=db.port,
            database=db.database,
            user=db.user,
            password=db.password.get_secret_value(),
            min_size=limits.min_size,
            max_size=limits.max_size,
            max_queries=limits.max_queries,
            max_inactive_connection_lifetime=limits.max_inactive_connection_lifetime,
            timeout=self._config.timeouts.connect,
            init=_init_connection,
            server_settings={
                "application_name": settings.application_name,
                "timezone": settings.timezone,
                "statement_timeout": str(settings.statement_timeout),
                "lock_timeout": str(settings.lock_timeout),
            },
        )

    async def _verify_connection(self, conn: asyncpg.Connection[asyncpg.Record]) -> None:
        """Sanity check run on every successful initialization."""
        await conn.fetchval("SELECT 1")

        expected = self._config.health.expected_tables
        if not expected:
            return
        rows = await conn.fetch(
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_name = ANY($1::text[])",
            expected,
        )
        missing = sorted(set(expected) - {row["table_name"] for row in rows})
        if missing:
            self._logger.warning("schema_tables_missing", tables=",".join(missing))

    async def initialize(self) -> None:
        """Open the driver pool and verify it, retrying with backoff.

        No-op when already connected. Concurrent callers are serialized: the
        first one connects and the rest return once it is done.

        Raises:
            ConfigurationError: If the database rejects the credentials, the
                database does not exist, or every attempt failed.
            PoolClosedError: If the pool was closed.
        """
        async with self._lock:
            if self._state is PoolState.CLOSED:
                raise PoolClosedError("pool is closed", operation="initialize")
            if self._state is PoolState.CONNECTED:
                return

            self._state = PoolState.CONNECTING
            db = self._config.database
            max_attempts = self._config.retry.max_attempts
            self._logger.info(
                "connection_starting", host=db.host, port=db.port, database=db.database
            )

            for attempt in range(1, max_attempts + 1):
                self._attempts = attempt
                started = time.monotonic()
                try:
                    if self._pool is None:
                        self._pool = await self._create_driver_pool()
                    async with asyncio.timeout(self._config.timeouts.connect):
                        async with self._pool.acquire() as conn:
                            await self._verify_connection(conn)
                except _CONNECT_ERRORS as e:
                    failed = ConnectionAttempt(attempt, str(e), time.monotonic() - started)
                    self._last_error = failed.error

                    if self._state is PoolState.CLOSED:
                        raise PoolClosedError("pool closed during initialization") from e
                    if is_fatal_connect_error(e):
                        self._state = PoolState.DISCONNECTED
                        self._logger.error(
                            "connection_rejected", attempt=attempt, error=failed.error
                        )
                        raise ConfigurationError(f"database rejected the connection: {e}") from e
                    if attempt >= max_attempts:
                        self._state = PoolState.DISCONNECTED
                        self._logger.error(
                            "connection_failed", attempts=attempt, error=failed.error
                        )
                        raise ConfigurationError(
                            f"failed to initialize after {attempt} attempts: {e}"
                        ) from e

                    delay = self._retry_delay(attempt)
                    self._logger.warning(
                        "connection_retry",
                        attempt=failed.attempt,
                        elapsed=round(failed.elapsed, 3),
                        delay=delay,
                        error=failed.error,
                    )
                    await asyncio.sleep(delay)
                    if self._state is PoolState.CLOSED:
                        raise PoolClosedError("pool closed during initialization") from e
                    continue

                if self._state is PoolState.CLOSED:
                    raise PoolClosedError("pool closed during initialization")
                self._state = PoolState.CONNECTED
                self._attempts = 0
                self._last_error = None
                self._logger.info("connection_established", attempts=attempt)
                self._start_background_tasks()
                return

    def _connect_in_background(self) -> asyncio.Task[None]:
        """The shared (re)initialization run, started when none is in progress."""
        task = self._connect_task
        if task is None or task.done():
            task = asyncio.create_task(self.initialize(), name="pool-connect")
            self._connect_task = task
        return task

    async def ensure_initialized(self, timeout: float | None = None) -> None:  # noqa: ASYNC109
        """Make the pool usable for the next operation.

        ``connected`` and ``degraded`` pools accept work as they are. For a
        ``disconnected`` pool the caller joins the (re)initialization run in
        progress, starting one if needed, and waits at most ``timeout``
        seconds for it. The run itself keeps going after the caller gives up,
        so callers arriving later join it instead of starting their own.

        Args:
            timeout: Wait budget in seconds; defaults to ``timeouts.acquisition``.

        Raises:
            AcquisitionTimeoutError: If the pool is still connecting when the
                budget runs out.
            ConnectionLostError: If the run the caller waited on failed
                without a fatal cause; retrying the operation later may work.
            ConfigurationError: If the database rejected the connection.
            PoolClosedError: If the pool was closed.
        """
        if self._state is PoolState.CLOSED:
            raise PoolClosedError("pool is closed")
        if self._state in (PoolState.CONNECTED, PoolState.DEGRADED):
            return

        budget = self._config.timeouts.acquisition if timeout is None else timeout
        try:
            async with asyncio.timeout(budget):
                await asyncio.shield(self._connect_in_background())
        except TimeoutError as e:
            self._logger.warning("connection_pending", timeout=budget, state=self._state)
            raise AcquisitionTimeoutError(
                f"database still connecting after {budget}s (last error: {self._last_error})",
                operation="acquire",
            ) from e
        except ConfigurationError as e:
            if e.__cause__ is not None and is_fatal_connect_error(e.__cause__):
                raise
            raise ConnectionLostError(
                f"database unavailable: {self._last_error}", operation="acquire"
            ) from e

    def mark_disconnected(self, reason: str) -> None:
        """Record that a live connection was lost; the next operation re-initializes."""
        if self._state not in (PoolState.CONNECTED, PoolState.DEGRADED):
            return
        self._state = PoolState.DISCONNECTED
        self._last_error = reason
        self._logger.warning("pool_disconnected", reason=reason)

    async def force_reconnect(self) -> None:
        """Drop every idle connection and run initialization again.

        Connections held by in-flight operations are not interrupted; they
        are closed when released.

        Raises:
            PoolClosedError: If the pool was closed.
            ConfigurationError: If reconnection fails.
        """
        if self._state is PoolState.CLOSED:
            raise PoolClosedError("pool is closed", operation="reconnect")
        self._logger.warning("pool_reconnecting", state=self._state)
        self._state = PoolState.DISCONNECTED
        if self._pool is not None:
            await self._pool.expire_connections()
        await asyncio.shield(self._connect_in_background())

    async def close(self) -> None:
        """Stop background work and drain the pool.

        Waits up to the close timeout for checked-out connections to come
        back, then terminates the remaining ones. Idempotent; the pool stays
        ``closed`` afterwards.
        """
        if self._state is PoolState.CLOSED:
            return
        self._state = PoolState.CLOSED
        await self._stop_background_tasks()

        async with self._lock:
            stats = self.stats()
            self._logger.info("pool_closing", **stats.to_dict())
            if stats.in_use:
                self._logger.warning("pool_close_with_active_connections", in_use=stats.in_use)

            pool, self._pool = self._pool, None
            if pool is None:
                return

            timeout = self._config.timeouts.close
            try:
                await asyncio.wait_for(pool.close(), timeout=timeout)
                self._logger.info("pool_closed")
            except TimeoutError:
                self._logger.warning("pool_close_timeout", timeout=timeout)
                pool.terminate()

    # -------------------------------------------------------------------------
    # Connection Acquisition
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _checkout(
        self,
        timeout: float,  # noqa: ASYNC109
    ) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        pool = self._pool
        if pool is None:
            raise ConnectionLostError("pool has no driver connections", operation="acquire")

        self._waiting += 1
        try:
            conn = await pool.acquire(timeout=timeout)
        except TimeoutError as e:
            self._logger.warning("acquisition_timeout", timeout=timeout, **self.stats().to_dict())
            raise AcquisitionTimeoutError(
                f"no connection available within {timeout}s", operation="acquire"
            ) from e
        except _CONNECT_ERRORS as e:
            error = classify_error(e, operation="acquire")
            if isinstance(error, ConnectionLostError):
                self.mark_disconnected(str(e))
            raise error from e
        finally:
            self._waiting -= 1
        self._in_use += 1

        try:
            yield conn
        finally:
            self._in_use -= 1
            try:
                await pool.release(conn)
            except Exception as e:  # Intentionally broad: a failed release must not mask the caller's outcome
                self._logger.warning("connection_release_failed", error=str(e))

    @asynccontextmanager
    async def acquire(
        self,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Check out a connection for the duration of the ``async with`` block.

        The connection always goes back to the pool on exit, whatever the
        block did. Waiting for a reconnect in progress counts against the
        same budget as waiting for a free connection.

        Args:
            timeout: Acquisition budget in seconds; defaults to
                ``timeouts.acquisition``.

        Raises:
            AcquisitionTimeoutError: If no connection frees up in time.
            ConnectionLostError: If the database cannot be reached.
            PoolClosedError: If the pool was closed.
        """
        budget = self._config.timeouts.acquisition if timeout is None else timeout
        started = time.monotonic()
        await self.ensure_initialized(budget)
        remaining = max(budget - (time.monotonic() - started), 0.001)
        async with self._checkout(remaining) as conn:
            yield conn

    # -------------------------------------------------------------------------
    # Health and Monitoring
    # -------------------------------------------------------------------------

    def _start_background_tasks(self) -> None:
        if not self._config.health.enabled:
            return
        if self._health_task is None or self._health_task.done():
            self._health_task = asyncio.create_task(self._health_loop(), name="pool-health")
        if self._monitor_task is None or self._monitor_task.done():
            self._monitor_task = asyncio.create_task(self._monitor_loop(), name="pool-monitor")

    async def _stop_background_tasks(self) -> None:
        current = asyncio.current_task()
        tasks = [
            t
            for t in (self._health_task, self._monitor_task, self._reconnect_task)
            if t is not None and t is not current and not t.done()
        ]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._health_task = self._monitor_task = self._reconnect_task = None

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.health.interval)
            await self._check_health_once()

    async def _check_health_once(self) -> None:
        """One background health check: degrade and schedule a reconnect on failure."""
        health = self._config.health
        timeout = self._config.timeouts.health_check
        started = time.monotonic()
        try:
            async with asyncio.timeout(timeout), self._checkout(timeout) as conn:
                await conn.fetchval("SELECT 1")
        except Exception as e:  # Intentionally broad: health check failures degrade the pool instead of propagating
            self._last_error = str(e) or type(e).__name__
            if self._state is PoolState.CONNECTED:
                self._state = PoolState.DEGRADED
            self._logger.warning("health_check_failed", state=self._state, error=self._last_error)
            self._schedule_reconnect()
            return

        elapsed = time.monotonic() - started
        if elapsed > health.slow_threshold:
            self._logger.warning("health_check_slow", elapsed=round(elapsed, 3))
        if self._state is PoolState.DEGRADED:
            self._state = PoolState.CONNECTED
            self._logger.info("pool_recovered", elapsed=round(elapsed, 3))

    def _schedule_reconnect(self) -> None:
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(
            self._reconnect_after_delay(), name="pool-reconnect"
        )

    async def _reconnect_after_delay(self) -> None:
        await asyncio.sleep(self._config.health.reconnect_delay)
        if self._state is PoolState.CONNECTED:
            return
        try:
            await self.force_reconnect()
        except (ConfigurationError, PoolClosedError) as e:
            self._logger.error("reconnect_failed", error=str(e))

    async def _monitor_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.health.monitor_interval)
            self.sample()

    def sample(self) -> PoolStats:
        """Record occupancy gauges and warn about saturation."""
        health = self._config.health
        stats = self.stats()
        POOL_CONNECTIONS.labels(state="in_use").set(stats.in_use)
        POOL_CONNECTIONS.labels(state="free").set(stats.free)
        POOL_CONNECTIONS.labels(state="waiting").set(stats.waiting)

        if stats.usage_ratio > health.high_usage_ratio:
            self._logger.warning("pool_high_usage", **stats.to_dict())
        if stats.waiting > health.queue_warning_threshold:
            self._logger.warning("pool_queue_backlog", waiting=stats.waiting)
        self._logger.debug("pool_stats", **stats.to_dict())
        return stats

    async def health_check(self) -> PoolHealth:
        """Check the database on demand. Never raises.

        Initializes a disconnected pool first, so a health check doubles as a
        readiness check.
        """
        timeout = self._config.timeouts.health_check
        started = time.monotonic()
        error: str | None = None
        try:
            await self.ensure_initialized()
            async with asyncio.timeout(timeout), self._checkout(timeout) as conn:
                await conn.fetchval("SELECT 1")
        except Exception as e:  # Intentionally broad: health reports carry the error instead of raising
            error = str(e) or type(e).__name__
        return PoolHealth(
            healthy=error is None,
            response_time=time.monotonic() - started,
            error=error,
            timestamp=datetime.datetime.now(datetime.UTC),
            stats=self.stats(),
        )

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def stats(self) -> PoolStats:
        """Current occupancy; ``in_use + free <= capacity`` always holds."""
        capacity = self._config.limits.max_size
        live = min(self._pool.get_size(), capacity) if self._pool is not None else 0
        in_use = min(self._in_use, capacity)
        return PoolStats(
            capacity=capacity,
            live=live,
            free=max(0, live - in_use),
            in_use=in_use,
            waiting=self._waiting,
        )

    def detect_leaks(self) -> LeakReport:
        """Flag suspiciously high long-lived occupancy."""
        stats = self.stats()
        leak_ratio = self._config.health.leak_ratio
        if stats.usage_ratio <= leak_ratio:
            return LeakReport(has_leaks=False, stats=stats)

        warning = (
            f"{stats.in_use}/{stats.capacity} connections in use "
            f"(above {leak_ratio:.0%}); connections may not be released"
        )
        self._logger.warning("connection_leak_suspected", **stats.to_dict())
        return LeakReport(has_leaks=True, stats=stats, warning=warning)

    def status(self) -> PoolStatus:
        """State, pending attempt count, last error and occupancy."""
        return PoolStatus(
            state=self._state,
            attempts=self._attempts,
            last_error=self._last_error,
            stats=self.stats(),
        )

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state in (PoolState.CONNECTED, PoolState.DEGRADED)

    @property
    def config(self) -> PoolConfig:
        """The pool configuration (read-only)."""
        return self._config

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Pool:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        db = self._config.database
        return f"Pool(host={db.host}, database={db.database}, state={self._state})"
