"""Multi-provider availability checks with last-provider-wins attribution."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Sequence
from typing import Protocol

import structlog

from magnetio.domain.entities.stremio import CacheStatus, ProviderCacheInfo
from magnetio.domain.exceptions import InvalidCredentialError, ProviderError
from magnetio.domain.ports.cache_provider import CacheProvider

log = structlog.get_logger(__name__)


class _MetricsRecorder(Protocol):
    def record_provider_check(
        self, name: str, duration_ns: int, available: int, *, success: bool
    ) -> None: ...


class AvailabilityChecker:
    """Asks every provider which hashes it can serve right now.

    Each provider gets exactly one batched query. Queries run concurrently
    so a slow or retrying provider does not delay the others, but results
    are applied in provider order: when several providers report the same
    hash, the one listed last wins. That is an ordering artefact, not a
    quality judgement.
    """

    def __init__(self, metrics: _MetricsRecorder | None = None) -> None:
        self._metrics = metrics

    async def check(
        self, providers: Sequence[CacheProvider], hashes: Iterable[str]
    ) -> dict[str, CacheStatus]:
        ordered = list(dict.fromkeys(h.lower() for h in hashes if h))
        if not providers or not ordered:
            return {}

        answers = await asyncio.gather(
            *(self._query(p, ordered) for p in providers)
        )

        statuses: dict[str, CacheStatus] = {}
        for provider, answer in zip(providers, answers):
            for h, info in answer.items():
                if not info.available:
                    continue
                key = h.lower()
                statuses[key] = CacheStatus(
                    content_hash=key,
                    available=True,
                    provider_name=provider.name,
                    file_info=info.file_info,
                )

        log.info(
            "availability_checked",
            providers=[p.name for p in providers],
            hashes=len(ordered),
            available=len(statuses),
        )
        return statuses

    async def _query(
        self, provider: CacheProvider, hashes: list[str]
    ) -> dict[str, ProviderCacheInfo]:
        """Run one provider query; any failure yields no entries."""
        start = time.perf_counter_ns()
        success = False
        result: dict[str, ProviderCacheInfo] = {}
        try:
            result = await provider.check_availability(hashes)
            success = True
        except InvalidCredentialError:
            log.warning("provider_credential_invalid", provider=provider.name)
        except ProviderError as exc:
            log.warning(
                "provider_check_failed", provider=provider.name, error=str(exc)
            )
        except Exception:
            log.warning(
                "provider_check_error", provider=provider.name, exc_info=True
            )

        if self._metrics is not None:
            self._metrics.record_provider_check(
                provider.name,
                time.perf_counter_ns() - start,
                sum(1 for info in result.values() if info.available),
                success=success,
            )
        return result
