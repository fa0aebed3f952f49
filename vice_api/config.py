"""Runtime configuration for the continuity service."""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import os
from typing import FrozenSet, Optional

from vice_store import BACKENDS

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str) -> str:
    value = os.getenv(name)
    return value.strip() if isinstance(value, str) else ""


def _flag(name: str, default: bool) -> bool:
    raw = _env(name).lower()
    if not raw:
        return default
    return raw in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Service configuration read from ``VICE_*`` environment variables."""

    store_backend: str = "memory"
    db_path: str = "vice.db"
    seed_path: Optional[str] = None
    api_tokens: FrozenSet[str] = field(default_factory=frozenset)
    auth_disabled: bool = False
    cors_enabled: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Construct from environment variables, falling back to defaults on bad values."""

        backend = _env("VICE_STORE").lower() or "memory"
        if backend not in BACKENDS:
            backend = "memory"
        tokens = frozenset(
            token.strip() for token in _env("VICE_API_TOKENS").split(",") if token.strip()
        )
        return cls(
            store_backend=backend,
            db_path=_env("VICE_DB_PATH") or "vice.db",
            seed_path=_env("VICE_SEED_PATH") or None,
            api_tokens=tokens,
            auth_disabled=_flag("VICE_AUTH_DISABLED", False),
            cors_enabled=_flag("VICE_API_ENABLE_CORS", True),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


__all__ = ["Settings", "get_settings"]
