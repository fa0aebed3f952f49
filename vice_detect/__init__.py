"""Continuity conflict detection."""
from .engine import (
    DetectionFailedError,
    DetectionResult,
    MissingFilmIdError,
    detect_conflicts,
)
from .reconcile import reconcile
from .rules import RULES, Rule
from .snapshot import load_snapshot
from .status import derive_status, film_status

__all__ = [
    "DetectionFailedError",
    "DetectionResult",
    "MissingFilmIdError",
    "RULES",
    "Rule",
    "derive_status",
    "detect_conflicts",
    "film_status",
    "load_snapshot",
    "reconcile",
]
