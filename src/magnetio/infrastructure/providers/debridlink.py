"""DebridLink provider (https://debrid-link.com/api/v2)."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from magnetio.domain.entities.stremio import ProviderCacheInfo
from magnetio.domain.exceptions import (
    InvalidCredentialError,
    NoVideoFoundError,
    ProviderError,
    QuotaExceededError,
    TransientProviderError,
)
from magnetio.infrastructure.providers.base import largest_video, to_magnet

log = structlog.get_logger(__name__)

_BASE_URL = "https://debrid-link.com/api/v2"

_QUOTA_ERRORS = frozenset(
    {
        "maxLink",
        "maxLinkHost",
        "maxData",
        "maxDataHost",
        "maxTorrent",
        "torrentTooBig",
        "freeServerOverload",
    }
)


class DebridLinkProvider:
    """Implements ``CacheProvider`` against the DebridLink v2 API."""

    prefix = "dl"

    def __init__(self, api_key: str, *, http_client: httpx.AsyncClient) -> None:
        self._api_key = api_key
        self._http = http_client

    def __repr__(self) -> str:
        return "DebridLinkProvider()"

    @property
    def name(self) -> str:
        return "DebridLink"

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Call the API and unwrap ``value`` from a successful envelope."""
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        start = time.perf_counter()
        try:
            resp = await self._http.request(
                method, f"{_BASE_URL}{path}", headers=headers, **kwargs
            )
            data = resp.json()
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
            raise TransientProviderError(self.name, reason) from exc
        except ValueError as exc:
            raise TransientProviderError(self.name, "invalid JSON response") from exc
        finally:
            log.debug(
                "debridlink_request",
                method=method,
                path=path,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 1),
            )

        if not isinstance(data, dict):
            raise ProviderError(self.name, f"unexpected response: {data!r}")
        if not data.get("success"):
            error = data.get("error", "")
            if error == "badToken":
                raise InvalidCredentialError(self.name, "Invalid API key")
            if error in _QUOTA_ERRORS:
                raise QuotaExceededError(
                    self.name, f"Premium account required ({error})"
                )
            raise ProviderError(self.name, f"API error: {error or data}")
        return data.get("value")

    async def check_availability(
        self, hashes: Sequence[str]
    ) -> dict[str, ProviderCacheInfo]:
        if not hashes:
            return {}
        log.debug("debridlink_cache_check", hashes=len(hashes))
        value = await self._request(
            "GET", "/seedbox/cached", params={"url": ",".join(hashes)}
        )
        value = value or {}

        results: dict[str, ProviderCacheInfo] = {}
        for h in hashes:
            info = value.get(h) or value.get(h.lower()) or value.get(h.upper())
            files = (info or {}).get("files") or []
            results[h] = ProviderCacheInfo(
                available=bool(info),
                file_info=[
                    {"name": f.get("name", ""), "size": f.get("size", 0)}
                    for f in files
                ],
            )
        return results

    async def resolve_playback_url(self, magnet_or_hash: str) -> str:
        data = await self._request(
            "POST",
            "/seedbox/add",
            json={"url": to_magnet(magnet_or_hash), "async": True},
        )
        best = largest_video((data or {}).get("files") or [], "name")
        if best is None or not best.get("downloadUrl"):
            raise NoVideoFoundError(self.name, "No video files found")
        return best["downloadUrl"]
