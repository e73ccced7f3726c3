"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import Iterable

from fastapi import HTTPException

from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.models.events import Event

from crewdesk_api.middleware.auth import AuthUser, get_current_user, require_auth
from crewdesk_api.services import event_service

__all__ = [
    "AuthUser",
    "get_current_user",
    "get_supabase_client",
    "load_event",
    "load_owned_event",
    "require_auth",
    "require_event_access",
]


def load_event(event_id: str) -> Event:
    event = event_service.get_event(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def load_owned_event(event_id: str, user: AuthUser) -> Event:
    """The event, if the caller created it. Other callers get a 404."""
    event = load_event(event_id)
    if event.created_by != user.user_id:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def require_event_access(event: Event, user: AuthUser, roles: Iterable[str]) -> None:
    """The creator always passes; anyone else needs one of ``roles``."""
    if event.created_by == user.user_id or user.has_role(roles):
        return
    raise HTTPException(status_code=403, detail="Insufficient permissions")
