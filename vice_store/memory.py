"""In-process record store guarded by a single lock."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import structlog

from vice_sdk.models import (
    Conflict,
    ConflictFinding,
    IdentityToken,
    Seed,
    Shot,
    StyleContract,
    WardrobeAssignment,
    utcnow,
)

from .base import (
    ConflictNotFoundError,
    Replacement,
    conflicts_from_findings,
    suppress_resolved,
)

logger = structlog.get_logger(__name__)


def _in_scope(scene_number: int, wanted: Optional[int]) -> bool:
    return wanted is None or scene_number == wanted


class _MemoryReader:
    def __init__(self, store: "InMemoryRecordStore") -> None:
        self._store = store

    def shots(self, film_id: str, scene_number: Optional[int] = None) -> List[Shot]:
        rows = [
            shot.model_copy()
            for shot in self._store._shots.values()
            if shot.film_id == film_id and _in_scope(shot.scene_number, scene_number)
        ]
        return sorted(rows, key=lambda shot: (shot.scene_number, shot.created_at))

    def latest_style_contract(self, film_id: str) -> Optional[StyleContract]:
        contracts = [c for c in self._store._contracts.values() if c.film_id == film_id]
        if not contracts:
            return None
        return max(contracts, key=lambda contract: contract.version).model_copy()

    def dirty_identity_tokens(self, film_id: str) -> List[IdentityToken]:
        return [
            token.model_copy()
            for token in self._store._tokens.values()
            if token.film_id == film_id and token.is_dirty
        ]

    def wardrobe_assignments(
        self, film_id: str, scene_number: Optional[int] = None
    ) -> List[WardrobeAssignment]:
        rows = [
            item.model_copy()
            for item in self._store._wardrobe.values()
            if item.film_id == film_id and _in_scope(item.scene_number, scene_number)
        ]
        return sorted(rows, key=lambda item: (item.scene_number, item.created_at))


class InMemoryRecordStore:
    """Record store held in process memory.

    Every read view and every conflict replacement holds the same re-entrant
    lock, so readers never observe a half-replaced scope.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._shots: Dict[str, Shot] = {}
        self._contracts: Dict[Tuple[str, int], StyleContract] = {}
        self._tokens: Dict[Tuple[str, str], IdentityToken] = {}
        self._wardrobe: Dict[Tuple[str, str, str, int], WardrobeAssignment] = {}
        self._conflicts: Dict[str, Conflict] = {}

    @classmethod
    def from_seed(cls, seed: Seed) -> "InMemoryRecordStore":
        store = cls()
        store.load_seed(seed)
        return store

    def load_seed(self, seed: Seed) -> None:
        """Upsert seed records; reloading a seed replaces rather than duplicates."""

        with self._lock:
            for film in seed.films:
                for shot in film.shots:
                    self._shots[shot.id] = shot
                for contract in film.style_contracts:
                    self._contracts[(contract.film_id, contract.version)] = contract
                for token in film.identity_tokens:
                    key = (token.film_id, token.internal_ref_code)
                    existing = self._tokens.get(key)
                    if existing is not None:
                        token = token.model_copy(update={"id": existing.id})
                    self._tokens[key] = token
                for item in film.wardrobe:
                    slot = (item.film_id, item.character_name, item.clothing_item, item.scene_number)
                    self._wardrobe[slot] = item
                for conflict in film.conflicts:
                    self._conflicts.setdefault(conflict.id, conflict)
        logger.info("vice.store.seeded", backend="memory", films=len(seed.films))

    @contextmanager
    def read_snapshot_view(self) -> Iterator[_MemoryReader]:
        with self._lock:
            yield _MemoryReader(self)

    def replace_unresolved_conflicts(
        self,
        film_id: str,
        scene_number: Optional[int],
        findings: Sequence[ConflictFinding],
    ) -> Replacement:
        with self._lock:
            in_scope = [
                conflict
                for conflict in self._conflicts.values()
                if conflict.film_id == film_id and _in_scope(conflict.scene_number, scene_number)
            ]
            fresh = suppress_resolved(findings, (c for c in in_scope if c.resolved))
            inserted = conflicts_from_findings(film_id, fresh)
            stale = [conflict.id for conflict in in_scope if not conflict.resolved]
            for conflict_id in stale:
                del self._conflicts[conflict_id]
            for conflict in inserted:
                self._conflicts[conflict.id] = conflict
        return Replacement(
            deleted=len(stale), inserted=inserted, suppressed=len(findings) - len(fresh)
        )

    def list_conflicts(
        self,
        film_id: str,
        scene_number: Optional[int] = None,
        include_resolved: bool = False,
    ) -> List[Conflict]:
        with self._lock:
            rows = [
                conflict.model_copy()
                for conflict in self._conflicts.values()
                if conflict.film_id == film_id
                and _in_scope(conflict.scene_number, scene_number)
                and (include_resolved or not conflict.resolved)
            ]
        return sorted(rows, key=lambda conflict: conflict.created_at, reverse=True)

    def resolve_conflict(self, conflict_id: str) -> Conflict:
        with self._lock:
            conflict = self._conflicts.get(conflict_id)
            if conflict is None:
                raise ConflictNotFoundError(f"conflict '{conflict_id}' not found")
            resolved = conflict.model_copy(update={"resolved": True, "resolved_at": utcnow()})
            self._conflicts[conflict_id] = resolved
        return resolved.model_copy()


__all__ = ["InMemoryRecordStore"]
