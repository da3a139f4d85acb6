"""Candidate deduplication by content hash."""

from __future__ import annotations

from collections.abc import Iterable

from magnetio.domain.entities.stremio import Candidate


def dedupe(
    existing: Iterable[Candidate], incoming: Iterable[Candidate]
) -> list[Candidate]:
    """Return the members of *incoming* whose hash is not in *existing*.

    Hashes compare case-insensitively. Order of *incoming* is preserved and
    repeats within *incoming* itself are dropped after their first occurrence.
    """
    seen = {c.content_hash.lower() for c in existing}
    fresh: list[Candidate] = []
    for candidate in incoming:
        key = candidate.content_hash.lower()
        if not key or key in seen:
            continue
        seen.add(key)
        fresh.append(candidate)
    return fresh
