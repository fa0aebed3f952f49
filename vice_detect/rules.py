"""Continuity rules applied to a loaded snapshot."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from vice_sdk.models import (
    CHARACTER_DRIFT,
    STYLE_DRIFT,
    WARDROBE_MISMATCH,
    ConflictFinding,
    IdentityToken,
    Snapshot,
)
from vice_sdk.references import extract_references


def detect_style_drift(snapshot: Snapshot) -> List[ConflictFinding]:
    """Flag shots bound to a style contract older or newer than the current one."""

    current = snapshot.current_style_version
    if current is None:
        return []

    findings: List[ConflictFinding] = []
    for shot in snapshot.shots:
        version = shot.style_contract_version
        if version is None or version == current:
            continue
        findings.append(
            ConflictFinding(
                scene_number=shot.scene_number,
                shot_id=shot.id,
                conflict_type=STYLE_DRIFT,
                description=(
                    f"Shot generated with style contract v{version}, current is v{current}."
                ),
                severity="warning",
            )
        )
    return findings


def detect_identity_drift(snapshot: Snapshot) -> List[ConflictFinding]:
    """Flag every reference a shot prompt makes to a dirty identity token.

    Repeated references within one prompt are reported once per occurrence.
    """

    if not snapshot.dirty_tokens:
        return []

    dirty: Dict[str, IdentityToken] = {}
    for token in snapshot.dirty_tokens:
        dirty.setdefault(token.internal_ref_code, token)

    findings: List[ConflictFinding] = []
    for shot in snapshot.shots:
        for code in extract_references(shot.prompt_text):
            token = dirty.get(code)
            if token is None:
                continue
            name = token.display_name or code
            findings.append(
                ConflictFinding(
                    scene_number=shot.scene_number,
                    shot_id=shot.id,
                    conflict_type=CHARACTER_DRIFT,
                    description=(
                        f"{name} ({token.asset_type}) has been updated "
                        "but this shot hasn't been regenerated."
                    ),
                    severity="error",
                )
            )
    return findings


def detect_wardrobe_mismatch(snapshot: Snapshot) -> List[ConflictFinding]:
    """Flag characters wearing more than one distinct item within a scene."""

    groups: Dict[Tuple[int, str], Dict[str, None]] = {}
    for assignment in snapshot.wardrobe:
        key = (assignment.scene_number, assignment.character_name)
        groups.setdefault(key, {})[assignment.clothing_item] = None

    findings: List[ConflictFinding] = []
    for (scene_number, character), items in groups.items():
        if len(items) < 2:
            continue
        listed = ", ".join(items)
        findings.append(
            ConflictFinding(
                scene_number=scene_number,
                shot_id=None,
                conflict_type=WARDROBE_MISMATCH,
                description=(
                    f"{character} has {len(items)} different wardrobe items "
                    f"in scene {scene_number}: {listed}."
                ),
                severity="warning",
            )
        )
    return findings


@dataclass(frozen=True)
class Rule:
    """A named detector mapping a snapshot to findings."""

    name: str
    detect: Callable[[Snapshot], List[ConflictFinding]]

    def __call__(self, snapshot: Snapshot) -> List[ConflictFinding]:
        return self.detect(snapshot)


RULES: Tuple[Rule, ...] = (
    Rule(STYLE_DRIFT, detect_style_drift),
    Rule(CHARACTER_DRIFT, detect_identity_drift),
    Rule(WARDROBE_MISMATCH, detect_wardrobe_mismatch),
)


__all__ = [
    "RULES",
    "Rule",
    "detect_identity_drift",
    "detect_style_drift",
    "detect_wardrobe_mismatch",
]
