"""Clock-in / clock-out and meal break recording for the signed-in user."""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog

from crewdesk_shared.constants import TimeEntryAction
from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.models.time_entries import TimeEntry
from crewdesk_shared.timesheet import Session, last_action, open_clock_in, work_sessions
from crewdesk_shared.time_utils import utc_now

log = structlog.get_logger(__name__)

# Enough history to find the open session for anyone clocking normally
RECENT_LIMIT = 200


def recent_entries(user_id: str, *, since: date | None = None) -> list[TimeEntry]:
    supabase = get_supabase_client(service_role=True)
    query = supabase.table("time_entries").select("*").eq("user_id", user_id)
    if since is not None:
        query = query.gte("timestamp", since.isoformat())
    result = query.order("timestamp", desc=True).limit(RECENT_LIMIT).execute()
    return [TimeEntry.from_db_row(row) for row in result.data or []]


def sessions_since(user_id: str, since: date) -> list[dict[str, Any]]:
    return [s.to_dict() for s in work_sessions(recent_entries(user_id, since=since))]


def open_session(entries: list[TimeEntry]) -> dict[str, Any] | None:
    entry = open_clock_in(entries)
    return Session(entry).to_dict() if entry else None


def open_meal(entries: list[TimeEntry]) -> dict[str, Any] | None:
    latest = last_action(entries)
    if latest is None or latest.action != "meal_start":
        return None
    return Session(latest).to_dict()


def user_division(user_id: str) -> str:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("users")
        .select("division")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    row = result.data[0] if result.data else {}
    return row.get("division") or "vendor"


def record(
    user_id: str,
    action: TimeEntryAction,
    *,
    division: str | None = None,
    notes: str | None = None,
    event_id: str | None = None,
    attestation_accepted: bool | None = None,
) -> TimeEntry:
    """Append one time entry stamped with the current time."""
    entry = TimeEntry(
        user_id=user_id,
        action=action,
        timestamp=utc_now(),
        division=division or user_division(user_id),
        notes=notes,
        event_id=event_id,
        attestation_accepted=attestation_accepted,
    )
    supabase = get_supabase_client(service_role=True)
    result = supabase.table("time_entries").insert(entry.to_insert_dict()).execute()
    log.info("time_entry_recorded", user_id=user_id, action=action, event_id=event_id)
    return TimeEntry.from_db_row(result.data[0]) if result.data else entry
