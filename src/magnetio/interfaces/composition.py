"""Builds every runtime collaborator at startup and tears them down on exit."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from magnetio.application.availability import AvailabilityChecker
from magnetio.application.use_cases.stream_resolution import StreamResolutionUseCase
from magnetio.infrastructure.cinemeta.client import HttpxCinemetaClient
from magnetio.infrastructure.config import AppConfig
from magnetio.infrastructure.metrics import MetricsCollector
from magnetio.infrastructure.persistence.partition_locks import PartitionLocks
from magnetio.infrastructure.persistence.partition_store import JsonPartitionStore
from magnetio.infrastructure.providers.factory import ProviderFactory
from magnetio.infrastructure.providers.retry_transport import RetryTransport
from magnetio.infrastructure.stremio.playback_ref import decode_ref
from magnetio.infrastructure.stremio.stream_converter import convert_available
from magnetio.infrastructure.stremio.stream_sorter import StreamSorter
from magnetio.infrastructure.torrentio.client import HttpxTorrentioClient
from magnetio.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _shared_client(config: AppConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )


def _premiumize_client(config: AppConfig) -> httpx.AsyncClient:
    """Client whose transport retries with a fixed pause between attempts."""
    policy = config.premiumize
    transport = RetryTransport(
        httpx.AsyncHTTPTransport(),
        max_attempts=policy.max_retries,
        delay=policy.retry_delay_seconds,
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(policy.timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI lifespan: fill ``app.state`` and release it on shutdown.

    Shutdown cancels pending partition refreshes before closing the HTTP
    clients they would otherwise still be using.
    """
    state = cast(AppState, app.state)
    config = state.config

    state.metrics = MetricsCollector()
    state.http_client = _shared_client(config)
    state.premiumize_http_client = _premiumize_client(config)

    state.partition_store = JsonPartitionStore(
        config.data_dir,
        PartitionLocks(timeout_seconds=config.lock_timeout_seconds),
    )
    state.provider_factory = ProviderFactory(
        http_client=state.http_client,
        premiumize_client=state.premiumize_http_client,
        premiumize_timeout=config.premiumize.timeout_seconds,
    )
    state.stream_uc = StreamResolutionUseCase(
        metadata=HttpxCinemetaClient(
            http_client=state.http_client, base_url=config.cinemeta_url
        ),
        indexer=HttpxTorrentioClient(
            http_client=state.http_client, base_url=config.torrentio_url
        ),
        store=state.partition_store,
        checker=AvailabilityChecker(metrics=state.metrics),
        sorter=StreamSorter(),
        provider_factory=state.provider_factory,
        convert_fn=convert_available,
        decode_ref_fn=decode_ref,
        metrics=state.metrics,
    )
    # Config holds no secrets: debrid keys arrive per request in the URL.
    log.info("addon_ready", config=config.to_sectioned_dict())

    try:
        yield
    finally:
        await state.stream_uc.aclose()
        await state.premiumize_http_client.aclose()
        await state.http_client.aclose()
        log.info("addon_stopped")
