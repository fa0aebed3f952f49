"""Read-only views over recorded conflicts."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from vice_api.auth import Principal, require_principal
from vice_api.store import get_store
from vice_api.utils import error, respond
from vice_detect.engine import redact
from vice_detect.status import film_status
from vice_store import RecordStore, StoreError

router = APIRouter(prefix="/vice")


@router.get("/conflicts")
def list_conflicts(
    film_id: Optional[str] = None,
    scene_number: Optional[int] = None,
    include_resolved: bool = False,
    principal: Principal = Depends(require_principal),
    store: RecordStore = Depends(get_store),
):
    """List recorded conflicts, newest first."""

    if not film_id:
        return error("film_id is required", 400)
    try:
        conflicts = store.list_conflicts(film_id, scene_number, include_resolved=include_resolved)
    except StoreError as exc:
        return error("Conflict listing failed", 500, details=redact(str(exc)))
    return respond({"conflicts": [conflict.model_dump(mode="json") for conflict in conflicts]})


@router.get("/status")
def status(
    film_id: Optional[str] = None,
    principal: Principal = Depends(require_principal),
    store: RecordStore = Depends(get_store),
):
    """Report the film's continuity status."""

    if not film_id:
        return error("film_id is required", 400)
    try:
        data = film_status(store, film_id)
    except StoreError as exc:
        return error("Status lookup failed", 500, details=redact(str(exc)))
    return respond(data)
