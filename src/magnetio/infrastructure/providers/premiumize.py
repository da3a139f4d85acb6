"""Premiumize provider (https://www.premiumize.me/api)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from magnetio.domain.entities.stremio import ProviderCacheInfo
from magnetio.domain.exceptions import (
    InvalidCredentialError,
    NoVideoFoundError,
    ProviderError,
    TransientProviderError,
)
from magnetio.infrastructure.providers.base import largest_video, to_magnet

log = structlog.get_logger(__name__)

_BASE_URL = "https://www.premiumize.me/api"
_INVALID_KEY_MESSAGE = "Invalid API key."


class PremiumizeProvider:
    """Implements ``CacheProvider`` against the Premiumize API.

    The injected client is expected to carry this provider's retry policy
    (see ``RetryTransport``); *timeout_seconds* bounds each attempt.
    """

    prefix = "pr"

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._timeout = timeout_seconds

    def __repr__(self) -> str:
        return "PremiumizeProvider()"

    @property
    def name(self) -> str:
        return "Premiumize"

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> dict[str, Any]:
        try:
            resp = await self._http.request(
                method, f"{_BASE_URL}{path}", timeout=self._timeout, **kwargs
            )
            data = resp.json()
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
            raise TransientProviderError(self.name, reason) from exc
        except ValueError as exc:
            raise TransientProviderError(self.name, "invalid JSON response") from exc

        if not isinstance(data, dict):
            raise ProviderError(self.name, f"unexpected response: {data!r}")
        if data.get("status") != "success":
            message = data.get("message", "")
            if message == _INVALID_KEY_MESSAGE:
                raise InvalidCredentialError(self.name, "Invalid API key")
            raise ProviderError(self.name, f"API error: {message or data}")
        return data

    async def check_availability(
        self, hashes: Sequence[str]
    ) -> dict[str, ProviderCacheInfo]:
        if not hashes:
            return {}
        log.debug("premiumize_cache_check", hashes=len(hashes))
        params: list[tuple[str, str]] = [("apikey", self._api_key)]
        params.extend(("items[]", h) for h in hashes)
        data = await self._request("GET", "/cache/check", params=params)

        flags = data.get("response") or []
        names = data.get("filename") or []
        sizes = data.get("filesize") or []

        results: dict[str, ProviderCacheInfo] = {}
        for i, h in enumerate(hashes):
            cached = bool(flags[i]) if i < len(flags) else False
            file_info = None
            if cached and i < len(names) and names[i]:
                size = sizes[i] if i < len(sizes) else 0
                file_info = [{"name": names[i], "size": int(size or 0)}]
            results[h] = ProviderCacheInfo(available=cached, file_info=file_info)
        return results

    async def resolve_playback_url(self, magnet_or_hash: str) -> str:
        data = await self._request(
            "POST",
            "/transfer/directdl",
            data={"apikey": self._api_key, "src": to_magnet(magnet_or_hash)},
        )
        best = largest_video(data.get("content") or [], "path")
        if best is None or not best.get("link"):
            raise NoVideoFoundError(self.name, "No video files found")
        return best["link"]
