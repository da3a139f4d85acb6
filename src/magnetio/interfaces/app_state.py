"""Typed ``app.state`` so routers get attribute completion."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from magnetio.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from magnetio.application.use_cases.stream_resolution import (
        StreamResolutionUseCase,
    )
    from magnetio.infrastructure.metrics import MetricsCollector
    from magnetio.infrastructure.persistence.partition_store import (
        JsonPartitionStore,
    )
    from magnetio.infrastructure.providers.factory import ProviderFactory


class AppState(State):
    """Set by ``create_app`` (config) and ``lifespan`` (everything else)."""

    config: AppConfig
    metrics: MetricsCollector

    # Shared client for Cinemeta, Torrentio and DebridLink; Premiumize has
    # its own with a longer timeout and retries.
    http_client: httpx.AsyncClient
    premiumize_http_client: httpx.AsyncClient

    partition_store: JsonPartitionStore
    provider_factory: ProviderFactory
    stream_uc: StreamResolutionUseCase
