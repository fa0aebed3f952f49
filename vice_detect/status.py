"""Production continuity status derived from recorded conflicts."""
from __future__ import annotations

from typing import Any, Dict, Literal, Sequence

from vice_sdk.models import Conflict
from vice_store.base import RecordStore

ViceStatus = Literal["active", "updating", "conflict"]


def derive_status(conflicts: Sequence[Conflict], dirty_tokens: int = 0) -> ViceStatus:
    """Collapse unresolved conflicts and pending identity changes into one status."""

    open_conflicts = [conflict for conflict in conflicts if not conflict.resolved]
    if any(conflict.severity == "error" for conflict in open_conflicts):
        return "conflict"
    if open_conflicts or dirty_tokens > 0:
        return "updating"
    return "active"


def film_status(store: RecordStore, film_id: str) -> Dict[str, Any]:
    conflicts = store.list_conflicts(film_id)
    with store.read_snapshot_view() as reader:
        dirty = len(reader.dirty_identity_tokens(film_id))
    return {
        "film_id": film_id,
        "status": derive_status(conflicts, dirty),
        "unresolved": len(conflicts),
        "errors": sum(1 for conflict in conflicts if conflict.severity == "error"),
        "warnings": sum(1 for conflict in conflicts if conflict.severity == "warning"),
        "dirty_tokens": dirty,
    }


__all__ = ["ViceStatus", "derive_status", "film_status"]
