"""Per-year JSON partition store for known movie candidates.

File layout: ``<data_dir>/<year>.json`` holds a JSON array of movie records::

    [
      {
        "id": "tt0133093",
        "title": "The Matrix",
        "candidates": [
          {"contentHash": "...", "filename": "...", "displayTitle": "...",
           "quality": "1080p", "size": "💾 2.1 GB"}
        ],
        "createdAt": "2024-01-01T00:00:00+00:00",
        "updatedAt": "2024-01-01T00:00:00+00:00"
      }
    ]

Every mutation rewrites the whole file: it is staged to a private
``<year>.json.*.tmp`` file and moved into place with ``os.replace``. A
year's cost therefore grows linearly with the number of movies released
in it.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import structlog

from magnetio.domain.dedup import dedupe
from magnetio.domain.entities.stremio import Candidate, MovieRecord, utcnow
from magnetio.domain.exceptions import LockTimeoutError
from magnetio.infrastructure.persistence.partition_locks import PartitionLocks

log = structlog.get_logger(__name__)

T = TypeVar("T")


def _serialize_candidate(c: Candidate) -> dict[str, str]:
    return {
        "contentHash": c.content_hash,
        "filename": c.filename,
        "displayTitle": c.display_title,
        "quality": c.quality,
        "size": c.size,
    }


def _deserialize_candidate(d: dict[str, Any]) -> Candidate:
    return Candidate(
        content_hash=d["contentHash"].lower(),
        filename=d.get("filename", ""),
        display_title=d.get("displayTitle", ""),
        quality=d.get("quality", ""),
        size=d.get("size", ""),
    )


def _serialize_record(record: MovieRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "title": record.title,
        "candidates": [_serialize_candidate(c) for c in record.candidates],
        "createdAt": record.created_at.isoformat(),
        "updatedAt": record.updated_at.isoformat(),
    }


def _deserialize_record(d: dict[str, Any]) -> MovieRecord:
    return MovieRecord(
        id=d["id"],
        title=d.get("title", ""),
        candidates=tuple(_deserialize_candidate(c) for c in d.get("candidates", [])),
        created_at=datetime.fromisoformat(d["createdAt"]),
        updated_at=datetime.fromisoformat(d["updatedAt"]),
    )


async def _run_to_completion(fn: Callable[..., T], *args: Any) -> T:
    """Run blocking *fn* in a worker thread and wait for it to finish.

    Cancelling the caller does not abandon the thread: the wait continues
    until *fn* returns, then ``CancelledError`` is re-raised. A caller
    holding a partition lock therefore keeps it for the whole write.
    """
    work = asyncio.ensure_future(asyncio.to_thread(fn, *args))
    cancelled = False
    while not work.done():
        try:
            await asyncio.wait({work})
        except asyncio.CancelledError:
            cancelled = True
    if cancelled:
        exc = work.exception()
        if exc is not None:
            log.error("partition_write_failed", exc_info=exc)
        raise asyncio.CancelledError
    return work.result()


class JsonPartitionStore:
    """Implements ``PartitionStorePort`` on one JSON file per release year.

    Reads and writes of the same year are serialized through
    ``PartitionLocks``; file I/O runs in a worker thread so the event loop
    is never blocked. Only the load/dedup/write cycle runs under the lock.
    """

    def __init__(self, data_dir: str | Path, locks: PartitionLocks) -> None:
        self.data_dir = Path(data_dir)
        self._locks = locks

    def partition_path(self, year: int) -> Path:
        return self.data_dir / f"{year}.json"

    # ------------------------------------------------------------------
    # Public API (PartitionStorePort)
    # ------------------------------------------------------------------

    async def get(self, imdb_id: str, year: int) -> MovieRecord | None:
        """Return the record for *imdb_id* in *year*, or None.

        A missing partition, a lock timeout and an unreadable file all
        yield None.
        """
        try:
            async with self._locks.hold(year):
                records = await asyncio.to_thread(self._read_partition, year)
        except LockTimeoutError:
            return None
        except (OSError, ValueError, KeyError, TypeError):
            log.error("partition_read_failed", year=year, exc_info=True)
            return None

        for record in records:
            if record.id == imdb_id:
                log.debug(
                    "partition_record_found",
                    imdb_id=imdb_id,
                    year=year,
                    candidates=len(record.candidates),
                )
                return record
        return None

    async def merge(
        self,
        imdb_id: str,
        year: int,
        title: str,
        candidates: Sequence[Candidate],
        *,
        fallback: Sequence[Candidate] = (),
    ) -> list[Candidate]:
        """Append unseen *candidates* to the record and persist the partition.

        Returns the merged candidate list. When nothing new survives
        deduplication the stored list is returned and the file is left
        untouched. On lock timeout or I/O failure nothing is written and
        *fallback* is returned.
        """
        try:
            async with self._locks.hold(year):
                return await _run_to_completion(
                    self._merge_locked, imdb_id, year, title, list(candidates)
                )
        except LockTimeoutError:
            log.warning("partition_merge_skipped", imdb_id=imdb_id, year=year)
            return list(fallback)
        except (OSError, ValueError, KeyError, TypeError):
            log.error(
                "partition_merge_failed", imdb_id=imdb_id, year=year, exc_info=True
            )
            return list(fallback)

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread, caller holds the lock)
    # ------------------------------------------------------------------

    def _merge_locked(
        self, imdb_id: str, year: int, title: str, incoming: list[Candidate]
    ) -> list[Candidate]:
        records = self._read_partition(year)
        index = next((i for i, r in enumerate(records) if r.id == imdb_id), None)
        existing = list(records[index].candidates) if index is not None else []

        fresh = dedupe(existing, incoming)
        if not fresh:
            return existing

        merged = existing + fresh
        now = utcnow()
        if index is not None:
            records[index] = replace(
                records[index], candidates=tuple(merged), updated_at=now
            )
        else:
            records.append(
                MovieRecord(
                    id=imdb_id,
                    title=title,
                    candidates=tuple(merged),
                    created_at=now,
                    updated_at=now,
                )
            )

        self._write_partition(year, records)
        log.info(
            "partition_merged",
            imdb_id=imdb_id,
            year=year,
            added=len(fresh),
            total=len(merged),
        )
        return merged

    def _read_partition(self, year: int) -> list[MovieRecord]:
        path = self.partition_path(year)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"Partition {path} must hold a JSON array")
        return [_deserialize_record(d) for d in data]

    def _write_partition(self, year: int, records: list[MovieRecord]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.partition_path(year)
        payload = json.dumps(
            [_serialize_record(r) for r in records], indent=2, ensure_ascii=False
        )
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.data_dir,
            prefix=f"{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as staging:
            staging.write(payload)
        try:
            os.replace(staging.name, path)
        except OSError:
            Path(staging.name).unlink(missing_ok=True)
            raise
