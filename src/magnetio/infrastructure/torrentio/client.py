"""Async httpx client for the Torrentio indexer addon."""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from magnetio.domain.entities.stremio import Candidate
from magnetio.infrastructure.stremio.stream_converter import QUALITY_RE

log = structlog.get_logger(__name__)

_SIZE_RE = re.compile(r"💾\s*([\d.]+)\s*(GB|MB)", re.IGNORECASE)


def parse_stream(stream: dict[str, Any]) -> Candidate | None:
    """Build a Candidate from one Torrentio stream entry (None if unusable)."""
    info_hash = stream.get("infoHash")
    if not info_hash or not isinstance(info_hash, str):
        return None

    name = stream.get("name") or ""
    title = stream.get("title") or ""

    m = QUALITY_RE.search(name) or QUALITY_RE.search(title)
    quality = m.group(0) if m else ""

    m = _SIZE_RE.search(title)
    size = m.group(0) if m else ""

    filename = title.split("\n")[0].strip() or "Unknown"

    return Candidate(
        content_hash=info_hash.strip().lower(),
        filename=filename,
        display_title=title or filename,
        quality=quality,
        size=size,
    )


class HttpxTorrentioClient:
    """Implements ``IndexerClientPort`` against the Torrentio addon.

    Never raises for upstream failures; an unreachable indexer yields an
    empty candidate list.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = "https://torrentio.strem.fun",
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def search(self, imdb_id: str) -> list[Candidate]:
        url = f"{self._base_url}/stream/movie/{imdb_id}.json"
        try:
            resp = await self._http.get(url)
            if not resp.is_success:
                log.info(
                    "torrentio_http_status", imdb_id=imdb_id, status=resp.status_code
                )
                return []
            data = resp.json()
        except httpx.HTTPError:
            log.warning("torrentio_request_failed", imdb_id=imdb_id, exc_info=True)
            return []
        except ValueError:
            log.warning("torrentio_invalid_json", imdb_id=imdb_id)
            return []

        streams = data.get("streams") if isinstance(data, dict) else None
        if not streams:
            return []

        candidates: list[Candidate] = []
        for stream in streams:
            if not isinstance(stream, dict):
                continue
            candidate = parse_stream(stream)
            if candidate is not None:
                candidates.append(candidate)

        log.info(
            "torrentio_streams_parsed",
            imdb_id=imdb_id,
            raw=len(streams),
            candidates=len(candidates),
        )
        return candidates
