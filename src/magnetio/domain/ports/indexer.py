"""Port for torrent indexer searches."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from magnetio.domain.entities.stremio import Candidate


@runtime_checkable
class IndexerClientPort(Protocol):
    async def search(self, imdb_id: str) -> list[Candidate]:
        """Return raw candidates for a movie (unchecked for availability)."""
        ...
