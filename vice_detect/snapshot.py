"""Snapshot loading for a single detection pass."""
from __future__ import annotations

import structlog

from vice_sdk.models import Scope, Snapshot
from vice_store.base import RecordStore

logger = structlog.get_logger(__name__)


def load_snapshot(store: RecordStore, scope: Scope) -> Snapshot:
    """Read every record the rules need inside one consistent read view.

    Wardrobe assignments are restricted to the scope's scene so a scene pass
    never emits findings it is not allowed to record. When the scope holds no
    shots the remaining reads are skipped and an empty snapshot is returned.
    """

    with store.read_snapshot_view() as reader:
        shots = reader.shots(scope.film_id, scope.scene_number)
        if not shots:
            logger.info("vice.snapshot.empty", film_id=scope.film_id, scene_number=scope.scene_number)
            return Snapshot(scope=scope)
        snapshot = Snapshot(
            scope=scope,
            shots=shots,
            style_contract=reader.latest_style_contract(scope.film_id),
            dirty_tokens=reader.dirty_identity_tokens(scope.film_id),
            wardrobe=reader.wardrobe_assignments(scope.film_id, scope.scene_number),
        )

    logger.info(
        "vice.snapshot.loaded",
        film_id=scope.film_id,
        scene_number=scope.scene_number,
        shots=len(snapshot.shots),
        style_version=snapshot.current_style_version,
        dirty_tokens=len(snapshot.dirty_tokens),
        wardrobe=len(snapshot.wardrobe),
    )
    return snapshot


__all__ = ["load_snapshot"]
