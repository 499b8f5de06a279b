"""
Unit tests for core.metrics module.

Tests:
- MetricsConfig defaults and validation
- Statement normalization, preview and analysis
- QueryTracker aggregation, ordering and eviction
- MetricsServer start/stop lifecycle
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from handbook.core.metrics import (
    MetricsConfig,
    MetricsServer,
    QueryTracker,
    analyze_statement,
    normalize_statement,
    preview_statement,
    start_metrics_server,
)


# ============================================================================
# MetricsConfig Tests
# ============================================================================


class TestMetricsConfig:
    """Tests for MetricsConfig Pydantic model."""

    def test_defaults(self) -> None:
        config = MetricsConfig()
        assert config.enabled is False
        assert config.port == 8000
        assert config.host == "127.0.0.1"
        assert config.path == "/metrics"

    def test_port_minimum_validation(self) -> None:
        with pytest.raises(ValidationError):
            MetricsConfig(port=1023)


# ============================================================================
# Statement Helpers
# ============================================================================


class TestNormalizeStatement:
    """normalize_statement() reduces statements to their shape."""

    def test_placeholders_and_literals(self) -> None:
        sql = "SELECT id FROM characters WHERE name_en = 'Kasumi' AND id > $1 LIMIT 20"
        assert normalize_statement(sql) == (
            "SELECT id FROM characters WHERE name_en = ? AND id > ? LIMIT ?"
        )

    def test_whitespace_collapsed(self) -> None:
        assert normalize_statement("SELECT 1\n   FROM\tskills") == "SELECT ? FROM skills"

    def test_same_shape_same_key(self) -> None:
        a = normalize_statement("SELECT * FROM items WHERE id = 1")
        b = normalize_statement("SELECT * FROM items WHERE id = 2")
        assert a == b


class TestPreviewStatement:
    """preview_statement() produces a single-line prefix."""

    def test_short(self) -> None:
        assert preview_statement("SELECT 1") == "SELECT 1"

    def test_truncated(self) -> None:
        preview = preview_statement("SELECT " + "x, " * 100, length=20)
        assert len(preview) == 23
        assert preview.endswith("...")


class TestAnalyzeStatement:
    """analyze_statement() optimization hints."""

    def test_clean_statement(self) -> None:
        assert analyze_statement("SELECT id FROM characters WHERE id = $1") == []

    def test_select_star(self) -> None:
        hints = analyze_statement("SELECT * FROM characters")
        assert any("SELECT *" in h for h in hints)

    def test_leading_wildcard(self) -> None:
        hints = analyze_statement("SELECT id FROM items WHERE name_en ILIKE '%sun'")
        assert any("pg_trgm" in h for h in hints)

    def test_bound_search_pattern(self) -> None:
        hints = analyze_statement(
            "SELECT id FROM characters WHERE (name_en::text ILIKE $1 OR name_jp::text ILIKE $1)"
        )
        assert any("pg_trgm" in h for h in hints)

    def test_prefix_literal_not_flagged(self) -> None:
        assert analyze_statement("SELECT id FROM items WHERE unique_key LIKE 'sun%'") == []

    def test_order_without_limit(self) -> None:
        hints = analyze_statement("SELECT id FROM events ORDER BY start_date")
        assert any("without LIMIT" in h for h in hints)

    def test_many_joins(self) -> None:
        sql = "SELECT 1 FROM a JOIN b ON TRUE JOIN c ON TRUE JOIN d ON TRUE LIMIT 1"
        assert any("joins" in h for h in analyze_statement(sql))

    def test_slow(self) -> None:
        hints = analyze_statement("SELECT id FROM skills LIMIT 1", elapsed=2.5)
        assert any("slow statement" in h for h in hints)


# ============================================================================
# QueryTracker Tests
# ============================================================================


class TestQueryTracker:
    """Per-statement aggregation."""

    def test_aggregates_by_shape(self) -> None:
        tracker = QueryTracker(slow_threshold=1.0)
        tracker.record("SELECT id FROM items WHERE id = $1", 0.5)
        tracker.record("SELECT id FROM items WHERE id = $1", 1.5, failed=True)

        assert len(tracker) == 1
        stats = tracker.snapshot()[0]
        assert stats.count == 2
        assert stats.errors == 1
        assert stats.slow == 1
        assert stats.max_time == 1.5
        assert stats.average_time == pytest.approx(1.0)

    def test_snapshot_slowest_first(self) -> None:
        tracker = QueryTracker()
        tracker.record("SELECT 1 FROM items", 0.1)
        tracker.record("SELECT 1 FROM skills", 0.9)
        tracker.record("SELECT 1 FROM events", 0.5)

        ordered = [s.statement for s in tracker.snapshot(limit=2)]
        assert ordered == ["SELECT ? FROM skills", "SELECT ? FROM events"]

    def test_eviction_of_least_recent(self) -> None:
        tracker = QueryTracker(max_entries=2)
        tracker.record("SELECT 1 FROM items", 0.1)
        tracker.record("SELECT 1 FROM skills", 0.1)
        tracker.record("SELECT 1 FROM items", 0.1)
        tracker.record("SELECT 1 FROM events", 0.1)

        kept = {s.statement for s in tracker.snapshot()}
        assert kept == {"SELECT ? FROM items", "SELECT ? FROM events"}

    def test_reset(self) -> None:
        tracker = QueryTracker()
        tracker.record("SELECT 1", 0.1)
        tracker.reset()
        assert len(tracker) == 0


# ============================================================================
# MetricsServer Tests
# ============================================================================


class TestMetricsServer:
    """Lifecycle of the aiohttp metrics endpoint."""

    @pytest.mark.asyncio
    async def test_disabled_does_nothing(self) -> None:
        server = await start_metrics_server(MetricsConfig(enabled=False))
        assert server._runner is None
        await server.stop()

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        runner = MagicMock()
        runner.setup = AsyncMock()
        runner.cleanup = AsyncMock()
        site = MagicMock()
        site.start = AsyncMock()

        with (
            patch("handbook.core.metrics.web.AppRunner", return_value=runner),
            patch("handbook.core.metrics.web.TCPSite", return_value=site) as tcp_site,
        ):
            server = MetricsServer(MetricsConfig(enabled=True, port=9100))
            await server.start()
            tcp_site.assert_called_once_with(runner, "127.0.0.1", 9100)
            await server.stop()

        runner.setup.assert_awaited_once()
        site.start.assert_awaited_once()
        runner.cleanup.assert_awaited_once()
        assert server._runner is None

    @pytest.mark.asyncio
    async def test_handler_serves_exposition(self) -> None:
        response = await MetricsServer._handle_metrics(MagicMock())
        assert b"handbook_query_duration_seconds" in response.body
