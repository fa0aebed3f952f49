"""Principal verification for inbound requests.

Verification is delegated to an ``AuthVerifier``. A rejected request raises
``AuthRejected`` carrying the verifier's response, which the application
returns unchanged.
"""
from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Protocol

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from .config import get_settings
from .utils import error


@dataclass(frozen=True)
class Principal:
    subject: str


class AuthRejected(Exception):
    """Raised when a verifier refuses a request."""

    def __init__(self, response: JSONResponse) -> None:
        super().__init__("request rejected by auth verifier")
        self.response = response


class AuthVerifier(Protocol):
    def verify(self, request: Request) -> Principal:
        ...


class BearerTokenVerifier:
    """Accepts requests presenting one of a fixed set of bearer tokens."""

    def __init__(self, tokens: Iterable[str]) -> None:
        self._tokens = tuple(tokens)

    def verify(self, request: Request) -> Principal:
        header = request.headers.get("authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthRejected(error("Missing authorization header", 401))
        token = token.strip()
        if not any(hmac.compare_digest(token, known) for known in self._tokens):
            raise AuthRejected(error("Invalid or expired token", 401))
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]
        return Principal(subject=f"token:{digest}")


class AllowAllVerifier:
    """Accepts every request; only for local development."""

    def verify(self, request: Request) -> Principal:
        return Principal(subject="anonymous")


@lru_cache(maxsize=1)
def get_verifier() -> AuthVerifier:
    settings = get_settings()
    if settings.auth_disabled:
        return AllowAllVerifier()
    return BearerTokenVerifier(settings.api_tokens)


def require_principal(
    request: Request, verifier: AuthVerifier = Depends(get_verifier)
) -> Principal:
    return verifier.verify(request)


__all__ = [
    "AllowAllVerifier",
    "AuthRejected",
    "AuthVerifier",
    "BearerTokenVerifier",
    "Principal",
    "get_verifier",
    "require_principal",
]
