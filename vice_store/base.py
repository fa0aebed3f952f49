"""Record store interface shared by the in-process and SQLite stores."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import ContextManager, Iterable, List, Optional, Protocol, Sequence, Tuple

from vice_sdk.models import (
    Conflict,
    ConflictFinding,
    IdentityToken,
    Seed,
    Shot,
    StyleContract,
    WardrobeAssignment,
)


class StoreError(RuntimeError):
    """Raised when a store read or write fails."""


class ConflictNotFoundError(StoreError):
    """Raised when a conflict id is unknown to the store."""


@dataclass
class Replacement:
    """Outcome of replacing the unresolved conflicts of one scope."""

    deleted: int
    inserted: List[Conflict] = field(default_factory=list)
    suppressed: int = 0


class RecordReader(Protocol):
    """Read access used by one detection pass."""

    def shots(self, film_id: str, scene_number: Optional[int] = None) -> List[Shot]:
        ...

    def latest_style_contract(self, film_id: str) -> Optional[StyleContract]:
        ...

    def dirty_identity_tokens(self, film_id: str) -> List[IdentityToken]:
        ...

    def wardrobe_assignments(
        self, film_id: str, scene_number: Optional[int] = None
    ) -> List[WardrobeAssignment]:
        ...


class RecordStore(Protocol):
    """Production record store."""

    def read_snapshot_view(self) -> ContextManager[RecordReader]:
        """Return a reader whose results do not change while it is open."""
        ...

    def replace_unresolved_conflicts(
        self,
        film_id: str,
        scene_number: Optional[int],
        findings: Sequence[ConflictFinding],
    ) -> Replacement:
        """Delete the scope's unresolved conflicts and insert ``findings`` atomically.

        Findings matching a resolved conflict in the scope are not inserted.
        """
        ...

    def list_conflicts(
        self,
        film_id: str,
        scene_number: Optional[int] = None,
        include_resolved: bool = False,
    ) -> List[Conflict]:
        ...

    def resolve_conflict(self, conflict_id: str) -> Conflict:
        ...

    def load_seed(self, seed: Seed) -> None:
        ...


def finding_key(finding: ConflictFinding) -> Tuple[int, Optional[str], str, str]:
    return (finding.scene_number, finding.shot_id, finding.conflict_type, finding.description)


def suppress_resolved(
    findings: Sequence[ConflictFinding], resolved: Iterable[Conflict]
) -> List[ConflictFinding]:
    """Drop findings already recorded as resolved conflicts."""

    settled = {finding_key(conflict) for conflict in resolved}
    return [finding for finding in findings if finding_key(finding) not in settled]


def conflicts_from_findings(film_id: str, findings: Sequence[ConflictFinding]) -> List[Conflict]:
    """Promote rule findings to fresh, unresolved conflict records."""

    return [
        Conflict(film_id=film_id, **finding.model_dump(mode="python"))
        for finding in findings
    ]


__all__ = [
    "ConflictNotFoundError",
    "RecordReader",
    "RecordStore",
    "Replacement",
    "StoreError",
    "conflicts_from_findings",
    "finding_key",
    "suppress_resolved",
]
