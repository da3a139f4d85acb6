"""Shared test fixtures for Magnetio test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from magnetio.domain.entities.stremio import Candidate
from magnetio.infrastructure.persistence.partition_locks import PartitionLocks
from magnetio.infrastructure.persistence.partition_store import JsonPartitionStore
from tests.factories import make_candidate


@pytest.fixture()
def candidate() -> Candidate:
    return make_candidate()


@pytest.fixture()
def locks() -> PartitionLocks:
    """Short lock timeout so contention tests finish quickly."""
    return PartitionLocks(timeout_seconds=0.2)


@pytest.fixture()
def store(tmp_path: Path, locks: PartitionLocks) -> JsonPartitionStore:
    """Real JsonPartitionStore writing into tmp_path/movies (auto-cleaned)."""
    return JsonPartitionStore(tmp_path / "movies", locks)


@pytest.fixture()
def mock_metrics() -> MagicMock:
    """Metrics recorder double (synchronous methods)."""
    return MagicMock()
