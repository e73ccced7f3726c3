"""Vendor invitation endpoints.

The token endpoints are public: vendors reach them from the emailed link,
and the 64-character token is the credential.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from crewdesk_shared.constants import TEAM_ADD_ROLES
from crewdesk_shared.models.invitations import AvailabilityEntry, VendorInvitation

from crewdesk_api.dependencies import AuthUser, require_auth
from crewdesk_api.responses import success_response, wrap_response
from crewdesk_api.services import invitation_service

router = APIRouter(prefix="/invitations", tags=["invitations"])


class BulkInviteRequest(BaseModel):
    vendor_ids: list[str] = Field(min_length=1)
    duration_weeks: int | None = Field(None, ge=1, le=12)


class InvitationResponse(BaseModel):
    availability: list[AvailabilityEntry] = Field(default_factory=list)
    # Event invitations can be answered with a single yes/no
    available: bool | None = None
    notes: str | None = None


def _load_open_invitation(token: str) -> VendorInvitation:
    invitation = invitation_service.get_invitation(token)
    if invitation is None:
        raise HTTPException(status_code=404, detail="Invitation not found")
    if invitation.status == "expired" or invitation_service.is_expired(invitation):
        if invitation.status != "expired":
            invitation_service.mark_expired(invitation)
        raise HTTPException(status_code=410, detail="This invitation has expired")
    return invitation


@router.post("/bulk")
async def bulk_invite(
    body: BulkInviteRequest,
    user: AuthUser = Depends(require_auth(*TEAM_ADD_ROLES)),
):
    outcome = await invitation_service.invite_bulk(
        body.vendor_ids, user.user_id, duration_weeks=body.duration_weeks,
    )
    return success_response(**outcome.to_dict())


@router.get("/{token}")
async def get_invitation(token: str):
    invitation = _load_open_invitation(token)
    return wrap_response(
        invitation.model_dump(mode="json", exclude={"id", "invited_by"}),
        event=invitation_service.event_summary(invitation.event_id),
    )


@router.post("/{token}")
async def respond_to_invitation(token: str, body: InvitationResponse):
    invitation = _load_open_invitation(token)

    entries = body.availability
    if not entries and body.available is not None and invitation.event_id:
        event = invitation_service.event_summary(invitation.event_id) or {}
        entries = [
            AvailabilityEntry(date=event.get("event_date"), available=body.available, notes=body.notes)
        ]
    if not entries:
        raise HTTPException(status_code=400, detail="Availability is required")

    data = invitation_service.record_response(invitation, entries)
    return success_response(status=data.get("status"), responded_at=data.get("responded_at"))
