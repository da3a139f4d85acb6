"""Port for movie metadata lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from magnetio.domain.entities.stremio import MovieMetadata


@runtime_checkable
class MetadataClientPort(Protocol):
    async def lookup(self, imdb_id: str) -> MovieMetadata | None:
        """Return title and release year, or None if unknown."""
        ...
