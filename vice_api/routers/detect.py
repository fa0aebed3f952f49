"""Continuity conflict detection endpoint."""
from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from vice_api.auth import Principal, require_principal
from vice_api.store import get_store
from vice_api.utils import CORS_HEADERS, error, respond
from vice_detect.engine import DetectionFailedError, MissingFilmIdError, detect_conflicts
from vice_store import RecordStore

router = APIRouter()
logger = structlog.get_logger(__name__)

PATH = "/detect-continuity-conflicts"


class DetectRequest(BaseModel):
    film_id: Optional[str] = None
    scene_number: Optional[int] = None


@router.options(PATH)
def detect_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(PATH)
def detect_endpoint(
    payload: Optional[DetectRequest] = None,
    principal: Principal = Depends(require_principal),
    store: RecordStore = Depends(get_store),
):
    request = payload or DetectRequest()
    try:
        result = detect_conflicts(store, request.film_id, request.scene_number)
    except MissingFilmIdError as exc:
        return error(str(exc), 400)
    except DetectionFailedError as exc:
        logger.error(
            "vice.detect.failed",
            film_id=request.film_id,
            scene_number=request.scene_number,
            principal=principal.subject,
            details=exc.details,
        )
        return error("Conflict detection failed", 500, details=exc.details)

    logger.info(
        "vice.detect.request_completed",
        film_id=request.film_id,
        scene_number=request.scene_number,
        principal=principal.subject,
        conflicts=len(result.conflicts),
    )
    return respond(result.to_payload())
