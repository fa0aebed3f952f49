"""Continuity conflict service FastAPI application."""
from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from vice_sdk import __version__

from .auth import AuthRejected
from .config import get_settings
from .routers import conflicts, detect, health
from .store import get_store

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]
)
logger = structlog.get_logger(__name__)


def _log_settings() -> None:
    settings = get_settings()
    logger.info(
        "vice.settings.loaded",
        store=settings.store_backend,
        seeded=bool(settings.seed_path),
        auth_disabled=settings.auth_disabled,
        api_tokens=len(settings.api_tokens),
        cors=settings.cors_enabled,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework glue
    _log_settings()
    get_store()
    yield


app = FastAPI(title="VICE Continuity API", version=__version__, lifespan=lifespan)
app.include_router(health.router)
app.include_router(detect.router)
app.include_router(conflicts.router)


@app.exception_handler(AuthRejected)
async def _auth_rejected(request: Request, exc: AuthRejected):
    logger.info("vice.auth.rejected", path=request.url.path, status=exc.response.status_code)
    return exc.response


async def _detect_preflight(request: Request, call_next):
    if request.method == "OPTIONS" and request.url.path == detect.PATH:
        return detect.detect_preflight()
    return await call_next(request)


if get_settings().cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last, so it wraps CORSMiddleware and answers detect preflights first.
    app.middleware("http")(_detect_preflight)
