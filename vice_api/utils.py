"""Common API response helpers."""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}


def respond(content: Any, status_code: int = 200) -> JSONResponse:
    """Return a JSON response carrying the permissive cross-origin headers."""

    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


def error(message: str, status_code: int, details: Optional[str] = None) -> JSONResponse:
    """Return an error body, with diagnostic details when supplied."""

    body: Dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return respond(body, status_code=status_code)
