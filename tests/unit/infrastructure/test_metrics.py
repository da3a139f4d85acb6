"""Tests for the in-memory MetricsCollector."""

from __future__ import annotations

from magnetio.infrastructure.metrics import (
    MetricsCollector,
    ProviderStats,
    ResolveStats,
)


class TestProviderStats:
    def test_snapshot_without_checks(self) -> None:
        snap = ProviderStats().snapshot()
        assert snap["checks"] == 0
        assert snap["avg_duration_ms"] == 0.0

    def test_snapshot_with_data(self) -> None:
        stats = ProviderStats(
            checks=4,
            successes=3,
            failures=1,
            available_hashes=12,
            total_duration_ns=2_000_000_000,
        )
        snap = stats.snapshot()
        assert snap["successes"] == 3
        assert snap["available_hashes"] == 12
        assert snap["avg_duration_ms"] == 500.0


class TestResolveStats:
    def test_snapshot_without_requests(self) -> None:
        snap = ResolveStats().snapshot()
        assert snap["requests"] == 0
        assert snap["avg_duration_ms"] == 0.0


class TestMetricsCollector:
    def test_record_provider_check(self) -> None:
        m = MetricsCollector()
        m.record_provider_check("DebridLink", 1_000_000, 3, success=True)
        m.record_provider_check("DebridLink", 3_000_000, 0, success=False)

        snap = m.snapshot()["providers"]["DebridLink"]
        assert snap["checks"] == 2
        assert snap["successes"] == 1
        assert snap["failures"] == 1
        assert snap["available_hashes"] == 3
        assert snap["avg_duration_ms"] == 2.0

    def test_record_resolve_by_source(self) -> None:
        m = MetricsCollector()
        m.record_resolve(1_000_000, 4, source="cache")
        m.record_resolve(1_000_000, 2, source="indexer")
        m.record_resolve(1_000_000, 0, source="none")
        m.record_resolve(1_000_000, 0, source="error")

        snap = m.snapshot()["resolve"]
        assert snap["requests"] == 4
        assert snap["served_from_cache"] == 1
        assert snap["served_from_indexer"] == 1
        assert snap["errors"] == 1
        assert snap["empty"] == 2
        assert snap["streams_returned"] == 6

    def test_record_refresh(self) -> None:
        m = MetricsCollector()
        m.record_refresh(success=True)
        m.record_refresh(success=True)
        m.record_refresh(success=False)

        assert m.snapshot()["background_refresh"] == {"succeeded": 2, "failed": 1}

    def test_providers_sorted_by_name(self) -> None:
        m = MetricsCollector()
        m.record_provider_check("Premiumize", 1, 0, success=True)
        m.record_provider_check("DebridLink", 1, 0, success=True)

        assert list(m.snapshot()["providers"]) == ["DebridLink", "Premiumize"]

    def test_uptime_non_negative(self) -> None:
        assert MetricsCollector().snapshot()["uptime_seconds"] >= 0
