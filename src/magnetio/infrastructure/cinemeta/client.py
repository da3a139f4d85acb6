"""Async httpx client for the Cinemeta metadata addon."""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from magnetio.domain.entities.stremio import MovieMetadata

log = structlog.get_logger(__name__)

_YEAR_RE = re.compile(r"\d{4}")


def _extract_year(meta: dict[str, Any]) -> int | None:
    """Release year from ``released`` (ISO date), then ``year``/``releaseInfo``."""
    for key in ("released", "year", "releaseInfo"):
        value = meta.get(key)
        if value is None:
            continue
        m = _YEAR_RE.search(str(value))
        if m:
            return int(m.group(0))
    return None


class HttpxCinemetaClient:
    """Implements ``MetadataClientPort`` against the Cinemeta addon."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = "https://v3-cinemeta.strem.io",
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def lookup(self, imdb_id: str) -> MovieMetadata | None:
        url = f"{self._base_url}/meta/movie/{imdb_id}.json"
        try:
            resp = await self._http.get(url)
            if resp.status_code == 404:
                log.debug("cinemeta_not_found", imdb_id=imdb_id)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError:
            log.warning("cinemeta_request_failed", imdb_id=imdb_id, exc_info=True)
            return None
        except ValueError:
            log.warning("cinemeta_invalid_json", imdb_id=imdb_id)
            return None

        meta = data.get("meta") if isinstance(data, dict) else None
        if not meta or not meta.get("name"):
            log.info("cinemeta_no_meta", imdb_id=imdb_id)
            return None

        year = _extract_year(meta)
        if year is None:
            log.info("cinemeta_no_year", imdb_id=imdb_id)
            return None

        log.debug("cinemeta_found", imdb_id=imdb_id, title=meta["name"], year=year)
        return MovieMetadata(title=meta["name"], year=year)
