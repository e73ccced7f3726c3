"""Team confirmation endpoints.

Public like the invitation token routes: vendors arrive from the emailed
confirmation link and the token identifies their event_teams row.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from crewdesk_shared.models.events import TeamMember

from crewdesk_api.responses import success_response, wrap_response
from crewdesk_api.services import invitation_service, team_service

router = APIRouter(prefix="/team-confirmation", tags=["team"])


class ConfirmationRequest(BaseModel):
    action: Literal["confirm", "decline"]


def _load_member(token: str) -> TeamMember:
    member = team_service.get_by_confirmation_token(token)
    if member is None:
        raise HTTPException(status_code=404, detail="Invalid or expired confirmation link")
    return member


@router.get("/{token}")
async def get_confirmation(token: str):
    member = _load_member(token)
    return wrap_response(
        {
            "id": member.id,
            "event_id": member.event_id,
            "vendor_id": member.vendor_id,
            "status": member.status,
            "already_responded": member.status in team_service.RESPONDED_TEAM_STATUSES,
            "vendor": {
                "first_name": member.vendor.get("first_name", ""),
                "last_name": member.vendor.get("last_name", ""),
            },
        },
        event=invitation_service.event_summary(member.event_id),
    )


@router.post("/{token}")
async def respond_to_confirmation(token: str, body: ConfirmationRequest):
    member = _load_member(token)
    if member.status != "pending_confirmation":
        raise HTTPException(status_code=409, detail="This invitation has already been responded to")

    status = team_service.record_confirmation(member, confirm=body.action == "confirm")
    message = (
        "Thank you for confirming! You have been added to the event team."
        if status == "confirmed"
        else "Your decline has been recorded."
    )
    return success_response(status=status, message=message)
