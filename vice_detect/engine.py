"""Entry point for continuity conflict detection passes."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import structlog

from vice_sdk.models import Conflict, ConflictFinding, Scope, Snapshot
from vice_store.base import RecordStore, StoreError

from .reconcile import reconcile
from .rules import RULES, Rule
from .snapshot import load_snapshot

logger = structlog.get_logger(__name__)

NOTHING_TO_ANALYZE = "No shots to analyze"
NO_CONFLICTS = "No continuity conflicts detected"

_URL_AUTHORITY = re.compile(r"\b([a-zA-Z][a-zA-Z0-9+.-]*://)[^\s/?#]+")
_SECRET_ASSIGNMENT = re.compile(r"(?i)\b(password|passwd|secret|token|api[_-]?key|key)=\S+")


class MissingFilmIdError(ValueError):
    """Raised when a detection request names no film."""

    def __init__(self) -> None:
        super().__init__("film_id is required")


class DetectionFailedError(RuntimeError):
    """Raised when loading or persisting a pass fails."""

    def __init__(self, details: str) -> None:
        super().__init__(details)
        self.details = details


@dataclass
class DetectionResult:
    conflicts: List[Conflict] = field(default_factory=list)
    summary: str = NO_CONFLICTS

    def to_payload(self) -> Dict[str, Any]:
        return {
            "conflicts": [conflict.model_dump(mode="json") for conflict in self.conflicts],
            "summary": self.summary,
        }


def summarize(count: int) -> str:
    if count == 0:
        return NO_CONFLICTS
    return f"Found {count} conflict(s)"


def redact(message: str) -> str:
    """Strip credentials and store addresses from a diagnostic string."""

    masked = _URL_AUTHORITY.sub(r"\1<redacted>", message)
    return _SECRET_ASSIGNMENT.sub(r"\1=<redacted>", masked)


def _describe(exc: Exception) -> str:
    if isinstance(exc, StoreError):
        return redact(str(exc))
    return redact(f"{type(exc).__name__}: {exc}")


def run_rules(snapshot: Snapshot, rules: Sequence[Rule] = RULES) -> List[ConflictFinding]:
    """Apply ``rules`` in order and concatenate their findings.

    A rule that raises aborts the pass before anything is written.
    """

    findings: List[ConflictFinding] = []
    for rule in rules:
        try:
            produced = rule(snapshot)
        except Exception as exc:
            logger.exception(
                "vice.rule.failed",
                rule=rule.name,
                film_id=snapshot.scope.film_id,
                scene_number=snapshot.scope.scene_number,
            )
            raise DetectionFailedError(redact(f"rule {rule.name} failed: {exc}")) from exc
        logger.debug("vice.rule.completed", rule=rule.name, findings=len(produced))
        findings.extend(produced)
    return findings


def detect_conflicts(
    store: RecordStore,
    film_id: Optional[str],
    scene_number: Optional[int] = None,
    *,
    rules: Sequence[Rule] = RULES,
) -> DetectionResult:
    """Run one detection pass over the film, or one of its scenes."""

    if not film_id:
        raise MissingFilmIdError()

    scope = Scope(film_id=film_id, scene_number=scene_number)

    try:
        snapshot = load_snapshot(store, scope)
    except Exception as exc:
        logger.error("vice.detect.load_failed", film_id=film_id, scene_number=scene_number)
        raise DetectionFailedError(_describe(exc)) from exc

    if not snapshot.shots:
        return DetectionResult(conflicts=[], summary=NOTHING_TO_ANALYZE)

    findings = run_rules(snapshot, rules)

    try:
        recorded = reconcile(store, scope, findings)
    except Exception as exc:
        logger.error("vice.detect.persist_failed", film_id=film_id, scene_number=scene_number)
        raise DetectionFailedError(_describe(exc)) from exc

    result = DetectionResult(conflicts=recorded, summary=summarize(len(recorded)))
    logger.info(
        "vice.detect.completed",
        film_id=film_id,
        scene_number=scene_number,
        conflicts=len(recorded),
        by_type={rule.name: sum(1 for c in recorded if c.conflict_type == rule.name) for rule in rules},
    )
    return result


__all__ = [
    "DetectionFailedError",
    "DetectionResult",
    "MissingFilmIdError",
    "NOTHING_TO_ANALYZE",
    "NO_CONFLICTS",
    "detect_conflicts",
    "redact",
    "run_rules",
    "summarize",
]
