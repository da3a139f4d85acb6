"""Turns stored candidates plus availability into client-facing streams."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from magnetio.domain.entities.stremio import Candidate, CacheStatus, PlayableStream
from magnetio.infrastructure.stremio.playback_ref import encode_ref

QUALITY_RE = re.compile(r"\d{3,4}p|4k|HDTS|CAM", re.IGNORECASE)
_SIZE_RE = re.compile(r"\d+(\.\d+)?\s*(GB|MB)", re.IGNORECASE)


def build_display_name(candidate: Candidate, provider_name: str) -> str:
    """``"🧲 | 1080p | 💾 2.1 GB | ⚡️ DebridLink"``, empty parts omitted."""
    quality = candidate.quality
    if not quality:
        m = QUALITY_RE.search(candidate.display_title)
        quality = m.group(0) if m else ""
    size = candidate.size
    if not size:
        m = _SIZE_RE.search(candidate.display_title)
        size = m.group(0) if m else ""
    parts = ["🧲", quality, size, f"⚡️ {provider_name}"]
    return " | ".join(p for p in parts if p)


def convert_available(
    candidates: Iterable[Candidate], statuses: Mapping[str, CacheStatus]
) -> list[PlayableStream]:
    """Keep candidates with a confirmed-available status, in input order."""
    streams: list[PlayableStream] = []
    for c in candidates:
        status = statuses.get(c.content_hash.lower())
        if status is None or not status.available:
            continue
        streams.append(
            PlayableStream(
                display_name=build_display_name(c, status.provider_name),
                title=c.filename,
                playback_ref=encode_ref(c.magnet_link),
                provider_name=status.provider_name,
            )
        )
    return streams
