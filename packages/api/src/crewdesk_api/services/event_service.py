"""Event data service."""

from __future__ import annotations

from typing import Any

import structlog

from crewdesk_shared.constants import SUPERVISOR_ROLES
from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.models.events import Event
from crewdesk_shared.time_utils import utc_now

from crewdesk_api.middleware.auth import AuthUser

log = structlog.get_logger(__name__)

# Columns a caller may set through create/update
EDITABLE_FIELDS = (
    "event_name",
    "artist",
    "venue",
    "city",
    "state",
    "event_date",
    "start_time",
    "end_time",
    "ends_next_day",
    "required_staff",
    "confirmed_staff",
    "ticket_sales",
    "is_active",
)


def visible_creator_ids(user: AuthUser) -> list[str]:
    """The caller, plus the managers a supervisor is actively linked to."""
    ids = [user.user_id]
    if user.role not in SUPERVISOR_ROLES:
        return ids
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("manager_team_members")
        .select("manager_id")
        .eq("member_id", user.user_id)
        .eq("is_active", True)
        .execute()
    )
    for row in result.data or []:
        if row.get("manager_id") and row["manager_id"] not in ids:
            ids.append(row["manager_id"])
    return ids


def list_events(user: AuthUser, *, is_active: bool | None = None) -> list[dict[str, Any]]:
    supabase = get_supabase_client(service_role=True)
    query = (
        supabase.table("events")
        .select("*")
        .in_("created_by", visible_creator_ids(user))
    )
    if is_active is not None:
        query = query.eq("is_active", is_active)
    result = (
        query.order("event_date", desc=True)
        .order("start_time", desc=True)
        .execute()
    )
    return result.data or []


def get_event(event_id: str) -> Event | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("events")
        .select("*")
        .eq("id", event_id)
        .limit(1)
        .execute()
    )
    return Event.from_db_row(result.data[0]) if result.data else None


def create_event(event: Event) -> dict[str, Any]:
    supabase = get_supabase_client(service_role=True)
    result = supabase.table("events").insert(event.to_insert_dict()).execute()
    log.info("event_created", event_name=event.event_name, created_by=event.created_by)
    return result.data[0] if result.data else event.to_insert_dict()


def update_event(event_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
    update = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    if "state" in update and isinstance(update["state"], str):
        update["state"] = update["state"].strip().upper() or None
    update["updated_at"] = utc_now().isoformat()

    supabase = get_supabase_client(service_role=True)
    result = supabase.table("events").update(update).eq("id", event_id).execute()
    log.info("event_updated", event_id=event_id, fields=sorted(update))
    return result.data[0] if result.data else None
