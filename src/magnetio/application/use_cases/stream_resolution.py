"""Stream resolution use case.

IMDb ID -> Cinemeta title/year -> partition cache (or Torrentio on a miss)
-> provider availability -> rank -> PlayableStream list.

Cached movies are answered from the partition immediately while a detached
task refreshes their candidates from the indexer for the next request.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

import structlog

from magnetio.domain.entities.stremio import (
    CacheStatus,
    Candidate,
    MovieMetadata,
    PlayableStream,
)
from magnetio.domain.exceptions import AllProvidersFailedError, NotFoundError
from magnetio.domain.ports.cache_provider import CacheProvider
from magnetio.domain.ports.indexer import IndexerClientPort
from magnetio.domain.ports.metadata import MetadataClientPort
from magnetio.domain.ports.partition_store import PartitionStorePort

log = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# ---------------------------------------------------------------------------


class _AvailabilityChecker(Protocol):
    async def check(
        self, providers: Sequence[CacheProvider], hashes: Iterable[str]
    ) -> dict[str, CacheStatus]: ...


class _StreamSorter(Protocol):
    def sort(self, streams: list[PlayableStream]) -> list[PlayableStream]: ...


class _MetricsRecorder(Protocol):
    def record_resolve(
        self, duration_ns: int, stream_count: int, *, source: str
    ) -> None: ...

    def record_refresh(self, *, success: bool) -> None: ...


_ProviderFactory = Callable[[str], list[CacheProvider]]
_ConvertFn = Callable[..., list[PlayableStream]]
_DecodeFn = Callable[[str], str]


class StreamResolutionUseCase:
    """Answers "which streams can I play for this movie?" and playback redirects.

    ``resolve`` never raises: every failure collapses to an empty list and is
    logged. ``get_playback_url`` raises ``AllProvidersFailedError`` when no
    provider can produce a URL.
    """

    def __init__(
        self,
        *,
        metadata: MetadataClientPort,
        indexer: IndexerClientPort,
        store: PartitionStorePort,
        checker: _AvailabilityChecker,
        sorter: _StreamSorter,
        provider_factory: _ProviderFactory,
        convert_fn: _ConvertFn,
        decode_ref_fn: _DecodeFn,
        metrics: _MetricsRecorder | None = None,
    ) -> None:
        self._metadata = metadata
        self._indexer = indexer
        self._store = store
        self._checker = checker
        self._sorter = sorter
        self._provider_factory = provider_factory
        self._convert = convert_fn
        self._decode_ref = decode_ref_fn
        self._metrics = metrics
        self._background: set[asyncio.Task[None]] = set()

    @property
    def pending_refreshes(self) -> int:
        return len(self._background)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, imdb_id: str, provider_config: str) -> list[PlayableStream]:
        start = time.perf_counter_ns()
        source = "none"
        streams: list[PlayableStream] = []
        try:
            source, streams = await self._resolve(imdb_id, provider_config)
        except NotFoundError as exc:
            log.info("stream_resolution_not_found", imdb_id=imdb_id, reason=str(exc))
        except Exception:
            source = "error"
            streams = []
            log.error("stream_resolution_failed", imdb_id=imdb_id, exc_info=True)

        if self._metrics is not None:
            self._metrics.record_resolve(
                time.perf_counter_ns() - start, len(streams), source=source
            )
        log.info(
            "stream_resolution_complete",
            imdb_id=imdb_id,
            source=source,
            streams=len(streams),
        )
        return streams

    async def _resolve(
        self, imdb_id: str, provider_config: str
    ) -> tuple[str, list[PlayableStream]]:
        providers = self._provider_factory(provider_config)
        if not providers:
            log.warning("stream_resolution_no_providers", imdb_id=imdb_id)
            return "none", []

        meta = await self._metadata.lookup(imdb_id)
        if meta is None:
            raise NotFoundError(f"no metadata for {imdb_id}")

        record = await self._store.get(imdb_id, meta.year)
        if record is not None and record.candidates:
            cached = list(record.candidates)
            log.debug(
                "stream_resolution_cache_hit",
                imdb_id=imdb_id,
                year=meta.year,
                candidates=len(cached),
            )
            self._spawn_refresh(imdb_id, meta, cached)
            return "cache", await self._playable(providers, cached)

        candidates = await self._indexer.search(imdb_id)
        if not candidates:
            raise NotFoundError(f"no candidates for {imdb_id}")

        merged = await self._store.merge(
            imdb_id, meta.year, meta.title, candidates, fallback=candidates
        )
        return "indexer", await self._playable(providers, merged)

    async def _playable(
        self, providers: Sequence[CacheProvider], candidates: Sequence[Candidate]
    ) -> list[PlayableStream]:
        hashes = list(dict.fromkeys(c.content_hash.lower() for c in candidates))
        statuses = await self._checker.check(providers, hashes)
        return self._sorter.sort(self._convert(candidates, statuses))

    # ------------------------------------------------------------------
    # Background refresh
    # ------------------------------------------------------------------

    def _spawn_refresh(
        self, imdb_id: str, meta: MovieMetadata, cached: list[Candidate]
    ) -> None:
        task = asyncio.create_task(
            self._refresh(imdb_id, meta, cached),
            name=f"refresh:{imdb_id}",
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh(
        self, imdb_id: str, meta: MovieMetadata, cached: list[Candidate]
    ) -> None:
        """Pull fresh candidates and merge them; outcome only logged."""
        try:
            fresh = await self._indexer.search(imdb_id)
            if fresh:
                merged = await self._store.merge(
                    imdb_id, meta.year, meta.title, fresh, fallback=cached
                )
                log.info(
                    "background_refresh_done",
                    imdb_id=imdb_id,
                    fetched=len(fresh),
                    total=len(merged),
                )
            if self._metrics is not None:
                self._metrics.record_refresh(success=True)
        except Exception:
            log.warning("background_refresh_failed", imdb_id=imdb_id, exc_info=True)
            if self._metrics is not None:
                self._metrics.record_refresh(success=False)

    async def wait_for_background(self) -> None:
        """Wait until all pending refreshes have finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def aclose(self) -> None:
        """Abandon pending refreshes (best effort, used on shutdown)."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            log.info("background_refresh_cancelled", count=len(tasks))

    # ------------------------------------------------------------------
    # Playback redirect
    # ------------------------------------------------------------------

    async def get_playback_url(self, provider_config: str, playback_ref: str) -> str:
        """Return a direct URL from the first provider that can serve it.

        Raises:
            ValueError: if *playback_ref* cannot be decoded.
            AllProvidersFailedError: if no provider is configured or all fail.
        """
        providers = self._provider_factory(provider_config)
        if not providers:
            raise AllProvidersFailedError()

        magnet = self._decode_ref(playback_ref)
        errors: list[Exception] = []
        for provider in providers:
            try:
                url = await provider.resolve_playback_url(magnet)
            except Exception as exc:
                log.warning(
                    "playback_provider_failed",
                    provider=provider.name,
                    error=str(exc),
                )
                errors.append(exc)
                continue
            log.info("playback_resolved", provider=provider.name)
            return url

        raise AllProvidersFailedError(errors)
