from __future__ import annotations

from vice_api.auth import AllowAllVerifier, BearerTokenVerifier, get_verifier
from vice_api.config import Settings, get_settings


def test_defaults(monkeypatch) -> None:
    for name in ("VICE_STORE", "VICE_DB_PATH", "VICE_SEED_PATH", "VICE_API_TOKENS",
                 "VICE_AUTH_DISABLED", "VICE_API_ENABLE_CORS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.store_backend == "memory"
    assert settings.db_path == "vice.db"
    assert settings.seed_path is None
    assert settings.api_tokens == frozenset()
    assert settings.auth_disabled is False
    assert settings.cors_enabled is True


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("VICE_STORE", "SQLite")
    monkeypatch.setenv("VICE_DB_PATH", "/tmp/films.db")
    monkeypatch.setenv("VICE_API_TOKENS", "alpha, beta,,")
    monkeypatch.setenv("VICE_API_ENABLE_CORS", "off")
    settings = Settings.from_env()
    assert settings.store_backend == "sqlite"
    assert settings.db_path == "/tmp/films.db"
    assert settings.api_tokens == frozenset({"alpha", "beta"})
    assert settings.cors_enabled is False


def test_unknown_backend_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("VICE_STORE", "cassandra")
    assert Settings.from_env().store_backend == "memory"


def test_verifier_follows_auth_toggle(monkeypatch) -> None:
    get_settings.cache_clear()
    get_verifier.cache_clear()
    monkeypatch.setenv("VICE_AUTH_DISABLED", "yes")
    try:
        assert isinstance(get_verifier(), AllowAllVerifier)
        get_settings.cache_clear()
        get_verifier.cache_clear()
        monkeypatch.setenv("VICE_AUTH_DISABLED", "0")
        assert isinstance(get_verifier(), BearerTokenVerifier)
    finally:
        get_settings.cache_clear()
        get_verifier.cache_clear()
