"""Process-local counters behind ``GET /stats``.

Everything is mutated from the event loop thread only, so plain ints
suffice. Counters reset on restart.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

_NS_PER_MS = 1_000_000


def _avg_ms(total_ns: int, count: int) -> float:
    return round(total_ns / count / _NS_PER_MS, 1) if count else 0.0


@dataclass
class ProviderStats:
    """Batched cache checks against one debrid service."""

    checks: int = 0
    successes: int = 0
    failures: int = 0
    available_hashes: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        return {
            "checks": self.checks,
            "successes": self.successes,
            "failures": self.failures,
            "available_hashes": self.available_hashes,
            "avg_duration_ms": _avg_ms(self.total_duration_ns, self.checks),
        }


@dataclass
class ResolveStats:
    requests: int = 0
    served_from_cache: int = 0
    served_from_indexer: int = 0
    empty: int = 0
    errors: int = 0
    streams_returned: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        return {
            "requests": self.requests,
            "served_from_cache": self.served_from_cache,
            "served_from_indexer": self.served_from_indexer,
            "empty": self.empty,
            "errors": self.errors,
            "streams_returned": self.streams_returned,
            "avg_duration_ms": _avg_ms(self.total_duration_ns, self.requests),
        }


# resolve source -> ResolveStats counter it bumps ("none" bumps nothing extra)
_SOURCE_COUNTERS = {
    "cache": "served_from_cache",
    "indexer": "served_from_indexer",
    "error": "errors",
}


@dataclass
class MetricsCollector:
    _providers: dict[str, ProviderStats] = field(default_factory=dict)
    _resolve: ResolveStats = field(default_factory=ResolveStats)
    _refresh_ok: int = 0
    _refresh_failed: int = 0
    _started_at_ns: int = field(default_factory=time.monotonic_ns)

    def record_provider_check(
        self,
        name: str,
        duration_ns: int,
        available: int,
        *,
        success: bool,
    ) -> None:
        """Count one batched availability query; hits only count on success."""
        stats = self._providers.get(name)
        if stats is None:
            stats = self._providers[name] = ProviderStats()
        stats.checks += 1
        stats.total_duration_ns += duration_ns
        if not success:
            stats.failures += 1
            return
        stats.successes += 1
        stats.available_hashes += available

    def record_resolve(
        self,
        duration_ns: int,
        stream_count: int,
        *,
        source: str,
    ) -> None:
        """*source* is one of ``cache``, ``indexer``, ``none`` or ``error``."""
        stats = self._resolve
        stats.requests += 1
        stats.total_duration_ns += duration_ns
        stats.streams_returned += stream_count
        counter = _SOURCE_COUNTERS.get(source)
        if counter is not None:
            setattr(stats, counter, getattr(stats, counter) + 1)
        if not stream_count:
            stats.empty += 1

    def record_refresh(self, *, success: bool) -> None:
        if success:
            self._refresh_ok += 1
        else:
            self._refresh_failed += 1

    def snapshot(self) -> dict[str, object]:
        uptime_ns = time.monotonic_ns() - self._started_at_ns
        return {
            "uptime_seconds": round(uptime_ns / 1e9, 1),
            "resolve": self._resolve.snapshot(),
            "providers": {
                name: self._providers[name].snapshot()
                for name in sorted(self._providers)
            },
            "background_refresh": {
                "succeeded": self._refresh_ok,
                "failed": self._refresh_failed,
            },
        }
