"""Event timesheet and attestation export endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from crewdesk_shared.constants import EVENT_REVIEW_ROLES

from crewdesk_api.dependencies import AuthUser, load_event, require_auth, require_event_access
from crewdesk_api.responses import csv_response, safe_filename_part, text_attachment
from crewdesk_api.services import attestation_service, timesheet_service

router = APIRouter(prefix="/events/{event_id}", tags=["timesheets"])


@router.get("/timesheet")
async def get_timesheet(
    event_id: str,
    output_format: str = Query("json", alias="format", pattern="^(json|csv)$"),
    user: AuthUser = Depends(require_auth()),
):
    event = load_event(event_id)
    require_event_access(event, user, EVENT_REVIEW_ROLES)

    timesheet = timesheet_service.event_timesheet(event)
    if output_format == "csv":
        day = event.event_date.isoformat() if event.event_date else "undated"
        filename = f"timesheet_{safe_filename_part(event.event_name)}_{day}.csv"
        return csv_response(timesheet_service.timesheet_csv_rows(timesheet), filename)
    return timesheet


@router.get("/attestation/{user_id}")
async def export_attestation(
    event_id: str,
    user_id: str,
    user: AuthUser = Depends(require_auth()),
):
    event = load_event(event_id)
    if user.user_id != user_id:
        require_event_access(event, user, EVENT_REVIEW_ROLES)

    export = attestation_service.build_attestation(event, user_id)
    return text_attachment(export.content, export.filename)
