"""Builds provider instances from the addon's key string."""

from __future__ import annotations

import httpx
import structlog

from magnetio.domain.ports.cache_provider import CacheProvider
from magnetio.infrastructure.providers.debridlink import DebridLinkProvider
from magnetio.infrastructure.providers.premiumize import PremiumizeProvider

log = structlog.get_logger(__name__)


class ProviderFactory:
    """Parses ``"dl=KEY,pr=KEY"`` into an ordered provider list.

    Order of the tokens is kept; it is the order availability checks are
    applied in. Unknown or empty tokens are ignored.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        premiumize_client: httpx.AsyncClient | None = None,
        premiumize_timeout: float = 30.0,
    ) -> None:
        self._http = http_client
        self._premiumize_http = premiumize_client or http_client
        self._premiumize_timeout = premiumize_timeout

    def __call__(self, api_keys: str) -> list[CacheProvider]:
        providers: list[CacheProvider] = []
        for token in (api_keys or "").split(","):
            prefix, sep, key = token.strip().partition("=")
            if not sep or not key:
                continue
            if prefix == DebridLinkProvider.prefix:
                providers.append(DebridLinkProvider(key, http_client=self._http))
            elif prefix == PremiumizeProvider.prefix:
                providers.append(
                    PremiumizeProvider(
                        key,
                        http_client=self._premiumize_http,
                        timeout_seconds=self._premiumize_timeout,
                    )
                )
            else:
                log.debug("provider_prefix_unknown", prefix=prefix)
        return providers
