"""Clock-in / clock-out and meal break endpoints for the signed-in user."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from crewdesk_shared.constants import TimeEntryAction
from crewdesk_shared.timesheet import Session, last_action, open_clock_in, transition_error
from crewdesk_shared.time_utils import utc_now

from crewdesk_api.dependencies import AuthUser, require_auth
from crewdesk_api.services import time_entry_service

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


class ClockRequest(BaseModel):
    notes: str | None = None
    event_id: str | None = None
    attestation_accepted: bool | None = None


def _record_checked(user: AuthUser, action: TimeEntryAction, body: ClockRequest):
    """Record ``action`` after checking it follows the user's last entry; 409 otherwise."""
    entries = time_entry_service.recent_entries(user.user_id)
    error = transition_error(entries, action)
    if error:
        raise HTTPException(status_code=409, detail=error)
    entry = time_entry_service.record(
        user.user_id,
        action,
        division=user.division,
        notes=body.notes,
        event_id=body.event_id,
        attestation_accepted=body.attestation_accepted if action == "clock_out" else None,
    )
    return entries, entry


@router.get("")
async def get_time_entries(
    open: bool = Query(False, description="Only the open session, if any"),
    since: date | None = Query(None),
    user: AuthUser = Depends(require_auth()),
):
    if open:
        return {"open": time_entry_service.open_session(time_entry_service.recent_entries(user.user_id))}
    day = since or utc_now().date()
    return {"entries": time_entry_service.sessions_since(user.user_id, day)}


@router.post("")
async def clock_in(
    body: ClockRequest | None = None,
    user: AuthUser = Depends(require_auth()),
):
    _, entry = _record_checked(user, "clock_in", body or ClockRequest())
    return JSONResponse(status_code=201, content={"entry": Session(entry).to_dict()})


@router.patch("")
async def clock_out(
    body: ClockRequest | None = None,
    user: AuthUser = Depends(require_auth()),
):
    entries, entry = _record_checked(user, "clock_out", body or ClockRequest())
    opened = open_clock_in(entries)
    return {"entry": Session(opened, entry).to_dict(), "form_id": entry.form_id}


@router.get("/meal")
async def get_open_meal(user: AuthUser = Depends(require_auth())):
    return {"open": time_entry_service.open_meal(time_entry_service.recent_entries(user.user_id))}


@router.post("/meal")
async def start_meal(
    body: ClockRequest | None = None,
    user: AuthUser = Depends(require_auth()),
):
    _, entry = _record_checked(user, "meal_start", body or ClockRequest())
    return JSONResponse(status_code=201, content={"entry": Session(entry).to_dict()})


@router.patch("/meal")
async def end_meal(
    body: ClockRequest | None = None,
    user: AuthUser = Depends(require_auth()),
):
    entries, entry = _record_checked(user, "meal_end", body or ClockRequest())
    started = last_action(entries) or entry
    return {"entry": Session(started, entry).to_dict()}
