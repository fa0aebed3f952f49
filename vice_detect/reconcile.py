"""Replace-in-scope persistence of rule findings."""
from __future__ import annotations

from typing import List, Sequence

import structlog

from vice_sdk.models import Conflict, ConflictFinding, Scope
from vice_store.base import RecordStore

logger = structlog.get_logger(__name__)


def reconcile(store: RecordStore, scope: Scope, findings: Sequence[ConflictFinding]) -> List[Conflict]:
    """Swap the scope's unresolved conflicts for ``findings``.

    The deletion happens even when ``findings`` is empty so stale entries are
    cleared. Resolved conflicts are left untouched, and findings they already
    cover are not recorded again.
    """

    replacement = store.replace_unresolved_conflicts(
        scope.film_id, scope.scene_number, list(findings)
    )
    logger.info(
        "vice.reconcile.replaced",
        film_id=scope.film_id,
        scene_number=scope.scene_number,
        deleted=replacement.deleted,
        inserted=len(replacement.inserted),
        suppressed=replacement.suppressed,
    )
    return replacement.inserted


__all__ = ["reconcile"]
