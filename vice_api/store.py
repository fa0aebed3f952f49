"""Process-wide record store used by the API routers."""
from __future__ import annotations

from functools import lru_cache

import structlog

from vice_sdk.loader import load_seed
from vice_store import RecordStore, create_store

from .config import get_settings

logger = structlog.get_logger(__name__)


@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    settings = get_settings()
    store = create_store(settings.store_backend, settings.db_path)
    if settings.seed_path:
        seed = load_seed(settings.seed_path)
        store.load_seed(seed)
        logger.info("vice.store.seed_loaded", films=len(seed.films), version=seed.version)
    return store


__all__ = ["get_store"]
