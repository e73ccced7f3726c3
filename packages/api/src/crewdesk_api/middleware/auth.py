"""Supabase session authentication and role checks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog
from fastapi import Depends, HTTPException, Request
from jose import JWTError, jwt

from crewdesk_shared.config import settings
from crewdesk_shared.db import get_supabase_client

logger = structlog.get_logger(__name__)


@dataclass
class AuthUser:
    user_id: str
    role: str = "worker"
    email: str | None = None
    division: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def has_role(self, roles: Iterable[str]) -> bool:
        return self.role in set(roles)


def _validate_jwt(token: str) -> dict[str, Any] | None:
    """Validate a Supabase access token and return its claims."""
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
        )
    except JWTError:
        return None


def _extract_token(request: Request) -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(settings.session_cookie_name) or None


async def get_current_user(request: Request) -> AuthUser | None:
    """Resolve the caller from a bearer token or session cookie.

    Returns None if no credentials are provided.
    Raises 401 if credentials are invalid.
    """
    token = _extract_token(request)
    if token is None:
        return None

    claims = _validate_jwt(token)
    if claims is None or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = claims["sub"]

    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("users")
        .select("id, email, role, division, is_active")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    row = result.data[0] if result.data else {}
    if row and row.get("is_active") is False:
        logger.warning("inactive_user_rejected", user_id=user_id)
        raise HTTPException(status_code=401, detail="Account is inactive")

    return AuthUser(
        user_id=user_id,
        role=(row.get("role") or "worker").lower(),
        email=row.get("email") or claims.get("email"),
        division=row.get("division"),
        metadata=claims.get("user_metadata") or {},
    )


def require_auth(*roles: str):
    """Dependency factory that requires a signed-in user, optionally in one of ``roles``."""

    async def _dependency(
        user: AuthUser | None = Depends(get_current_user),
    ) -> AuthUser:
        if user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        if roles and not user.has_role(roles):
            raise HTTPException(
                status_code=403,
                detail="Insufficient permissions",
            )
        return user

    return _dependency
