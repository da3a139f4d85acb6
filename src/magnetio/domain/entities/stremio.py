"""Domain entities for cached torrent streams.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Candidate:
    """A torrent discovered by the indexer, not yet checked for availability."""

    content_hash: str  # BitTorrent info hash, lowercase hex
    filename: str
    display_title: str
    quality: str = ""  # "1080p", "4k", "CAM", ...
    size: str = ""  # "💾 2.1 GB"

    @property
    def magnet_link(self) -> str:
        return f"magnet:?xt=urn:btih:{self.content_hash}"


@dataclass(frozen=True)
class MovieRecord:
    """All candidates known for one movie inside a year partition."""

    id: str  # IMDb ID, e.g. "tt0133093"
    title: str
    candidates: tuple[Candidate, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class MovieMetadata:
    """Title and release year returned by the metadata service."""

    title: str
    year: int


@dataclass(frozen=True)
class ProviderCacheInfo:
    """What a single provider reports for one hash."""

    available: bool
    file_info: list[dict[str, Any]] | None = None


@dataclass(frozen=True)
class CacheStatus:
    """Availability of one hash, attributed to the provider that reported it."""

    content_hash: str
    available: bool
    provider_name: str
    file_info: list[dict[str, Any]] | None = None


@dataclass(frozen=True)
class PlayableStream:
    """A ranked, provider-attributed stream ready for the Stremio client."""

    display_name: str  # "🧲 | 1080p | 💾 2.1 GB | ⚡️ DebridLink"
    title: str  # Release filename
    playback_ref: str  # URL-safe base64 of the magnet link
    provider_name: str
