"""Port for the per-year movie partition store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from magnetio.domain.entities.stremio import Candidate, MovieRecord


@runtime_checkable
class PartitionStorePort(Protocol):
    """Durable store of known candidates, partitioned by release year."""

    async def get(self, imdb_id: str, year: int) -> MovieRecord | None: ...

    async def merge(
        self,
        imdb_id: str,
        year: int,
        title: str,
        candidates: Sequence[Candidate],
        *,
        fallback: Sequence[Candidate] = (),
    ) -> list[Candidate]: ...
