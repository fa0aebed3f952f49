"""Record stores for production data and recorded conflicts."""
from __future__ import annotations

from pathlib import Path

from .base import (
    ConflictNotFoundError,
    RecordReader,
    RecordStore,
    Replacement,
    StoreError,
    conflicts_from_findings,
)
from .memory import InMemoryRecordStore
from .sqlite import SqliteRecordStore

BACKENDS = ("memory", "sqlite")


def create_store(backend: str = "memory", db_path: Path | str = "vice.db") -> RecordStore:
    """Instantiate the record store named by ``backend``."""

    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "sqlite":
        return SqliteRecordStore(db_path)
    raise ValueError(f"Unknown store backend '{backend}', expected one of {BACKENDS}")


__all__ = [
    "BACKENDS",
    "ConflictNotFoundError",
    "InMemoryRecordStore",
    "RecordReader",
    "RecordStore",
    "Replacement",
    "SqliteRecordStore",
    "StoreError",
    "conflicts_from_findings",
    "create_store",
]
