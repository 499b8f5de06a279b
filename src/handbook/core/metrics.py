"""
Prometheus metrics, per-statement performance tracking, and HTTP exposition.

Module-level metric objects are process-wide singletons updated by the
[Pool][handbook.core.pool.Pool], [Executor][handbook.core.executor.Executor]
and [TransactionCoordinator][handbook.core.transaction.TransactionCoordinator].
[MetricsServer][handbook.core.metrics.MetricsServer] serves them over aiohttp.

Architecture:
    QUERY_DURATION_SECONDS:  Histogram of statement latency by operation.
    DATABASE_ERRORS:         Counter of classified failures by error class.
    POOL_CONNECTIONS:        Gauge of pool occupancy (in_use, free, waiting).
    TRANSACTION_RETRIES:     Counter of deadlock-driven transaction retries.

[QueryTracker][handbook.core.metrics.QueryTracker] keeps a bounded, in-memory
record of how each normalized statement performs, for slow-query reports.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from dataclasses import dataclass

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    The endpoint is only started when ``enabled`` is True.
    """

    enabled: bool = Field(default=False, description="Enable the /metrics endpoint")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

QUERY_DURATION_SECONDS = Histogram(
    "handbook_query_duration_seconds",
    "Statement execution time in seconds, acquisition included",
    ["operation"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)

DATABASE_ERRORS = Counter(
    "handbook_database_errors",
    "Classified database failures",
    ["error"],
)

POOL_CONNECTIONS = Gauge(
    "handbook_pool_connections",
    "Pool occupancy by state",
    ["state"],
)

TRANSACTION_RETRIES = Counter(
    "handbook_transaction_retries",
    "Transactions re-run after a deadlock",
)


# ---------------------------------------------------------------------------
# Statement tracking
# ---------------------------------------------------------------------------

_WHITESPACE = re.compile(r"\s+")
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_NUMBER_LITERAL = re.compile(r"\b\d+(?:\.\d+)?\b")
_PLACEHOLDER = re.compile(r"\$\d+")
_SUBSTRING_MATCH = re.compile(r"\bI?LIKE\s+(?:'%|\$\d+)", re.IGNORECASE)
_JOIN = re.compile(r"\bJOIN\b", re.IGNORECASE)


def normalize_statement(statement: str) -> str:
    """Reduce a statement to its shape: literals and placeholders become ``?``."""
    text = _STRING_LITERAL.sub("?", statement)
    text = _PLACEHOLDER.sub("?", text)
    text = _NUMBER_LITERAL.sub("?", text)
    return _WHITESPACE.sub(" ", text).strip()


def preview_statement(statement: str, length: int = 100) -> str:
    """Single-line statement prefix for log fields."""
    text = _WHITESPACE.sub(" ", statement).strip()
    if len(text) <= length:
        return text
    return text[:length] + "..."


def analyze_statement(statement: str, elapsed: float | None = None) -> list[str]:
    """Return optimization hints for a statement.

    Args:
        statement: SQL text.
        elapsed: Observed execution time in seconds, if known.

    Returns:
        Human-readable suggestions; empty when nothing stands out.
    """
    upper = _WHITESPACE.sub(" ", statement).upper()
    hints: list[str] = []
    if elapsed is not None and elapsed > 1.0:
        hints.append("slow statement: check indexes on filtered and sorted columns")
    if "SELECT *" in upper:
        hints.append("select only the needed columns instead of SELECT *")
    if _SUBSTRING_MATCH.search(statement):
        hints.append("substring LIKE cannot use a btree index; consider a pg_trgm index")
    if "ORDER BY" in upper and "LIMIT" not in upper:
        hints.append("ORDER BY without LIMIT sorts the whole result")
    if len(_JOIN.findall(statement)) >= 3:
        hints.append("3+ joins: verify join columns are indexed")
    if "DISTINCT" in upper and "ORDER BY" in upper:
        hints.append("DISTINCT with ORDER BY forces an extra sort")
    return hints


@dataclass(slots=True)
class QueryStats:
    """Running totals for one normalized statement."""

    statement: str
    count: int = 0
    errors: int = 0
    slow: int = 0
    total_time: float = 0.0
    max_time: float = 0.0

    @property
    def average_time(self) -> float:
        return self.total_time / self.count if self.count else 0.0


class QueryTracker:
    """Bounded per-statement performance record.

    Keyed by [normalize_statement()][handbook.core.metrics.normalize_statement]
    so calls that differ only in parameter values aggregate together. When
    full, the least recently recorded statement is evicted.
    """

    def __init__(self, max_entries: int = 500, slow_threshold: float = 1.0) -> None:
        self._max_entries = max_entries
        self._slow_threshold = slow_threshold
        self._stats: OrderedDict[str, QueryStats] = OrderedDict()

    def record(self, statement: str, elapsed: float, *, failed: bool = False) -> QueryStats:
        """Add one execution to the statement's totals."""
        key = normalize_statement(statement)
        stats = self._stats.get(key)
        if stats is None:
            stats = QueryStats(statement=key)
            self._stats[key] = stats
            if len(self._stats) > self._max_entries:
                self._stats.popitem(last=False)
        else:
            self._stats.move_to_end(key)

        stats.count += 1
        stats.total_time += elapsed
        stats.max_time = max(stats.max_time, elapsed)
        if failed:
            stats.errors += 1
        if elapsed > self._slow_threshold:
            stats.slow += 1
        return stats

    def snapshot(self, limit: int | None = None) -> list[QueryStats]:
        """Tracked statements, slowest average first."""
        ordered = sorted(self._stats.values(), key=lambda s: s.average_time, reverse=True)
        return ordered[:limit] if limit is not None else ordered

    def reset(self) -> None:
        self._stats.clear()

    def __len__(self) -> int:
        return len(self._stats)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... process runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Bind the endpoint; no-op when metrics are disabled.

        Raises:
            OSError: If the port is already in use.
        """
        if not self._config.enabled:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        await web.TCPSite(self._runner, self._config.host, self._config.port).start()

    async def stop(self) -> None:
        """Release the port. Safe to call when never started."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})


async def start_metrics_server(config: MetricsConfig | None = None) -> MetricsServer:
    """Create and start a [MetricsServer][handbook.core.metrics.MetricsServer]."""
    server = MetricsServer(config or MetricsConfig())
    await server.start()
    return server
