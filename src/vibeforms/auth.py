from __future__ import annotations

from typing import Protocol

from fastapi import HTTPException, Request

from vibeforms.config import Settings

LOCAL_OWNER = "local"


class AuthProvider(Protocol):
    def require_owner(self, request: Request) -> str: ...


class NoAuthProvider:
    """Single-tenant mode: every caller acts as the same local owner."""

    def require_owner(self, request: Request) -> str:
        return LOCAL_OWNER


class HeaderAuthProvider:
    """Trusts an owner id set by an upstream session layer."""

    def __init__(self, header: str) -> None:
        self._header = header

    def require_owner(self, request: Request) -> str:
        owner_id = request.headers.get(self._header, "").strip()
        if not owner_id:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return owner_id


def get_auth_provider(settings: Settings) -> AuthProvider:
    if settings.auth_mode == "header":
        return HeaderAuthProvider(settings.owner_header)
    return NoAuthProvider()
