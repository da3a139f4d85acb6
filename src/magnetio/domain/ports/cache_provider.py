"""Port for debrid storage providers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from magnetio.domain.entities.stremio import ProviderCacheInfo


@runtime_checkable
class CacheProvider(Protocol):
    """A debrid service that can tell which torrents it has cached.

    Implementations hold their own credential; callers only see the
    capability below.
    """

    @property
    def name(self) -> str:
        """Display name used for attribution (e.g. 'DebridLink')."""
        ...

    async def check_availability(
        self, hashes: Sequence[str]
    ) -> dict[str, ProviderCacheInfo]:
        """Batch-check *hashes* in one round trip.

        Raises ProviderError subclasses on transport or credential failures.
        """
        ...

    async def resolve_playback_url(self, magnet_or_hash: str) -> str:
        """Add the torrent and return a direct URL to its largest video file.

        Raises ProviderError on no-video-found, invalid key or quota limits.
        """
        ...
