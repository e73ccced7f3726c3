"""Event team endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from crewdesk_shared.constants import TEAM_ADD_ROLES, TEAM_MANAGE_ROLES

from crewdesk_api.dependencies import AuthUser, load_event, require_auth, require_event_access
from crewdesk_api.responses import success_response, wrap_response
from crewdesk_api.services import team_service

router = APIRouter(prefix="/events/{event_id}/team", tags=["team"])


class AddTeamRequest(BaseModel):
    vendor_ids: list[str] = Field(min_length=1)
    auto_confirm: bool = False


class ResendConfirmationRequest(BaseModel):
    # Empty means every member still pending
    vendor_ids: list[str] = Field(default_factory=list)


@router.get("")
async def list_team(event_id: str, user: AuthUser = Depends(require_auth())):
    event = load_event(event_id)
    require_event_access(event, user, TEAM_MANAGE_ROLES)
    return wrap_response(team_service.list_team(event))


@router.post("")
async def add_team_members(
    event_id: str,
    body: AddTeamRequest,
    user: AuthUser = Depends(require_auth()),
):
    event = load_event(event_id)
    require_event_access(event, user, TEAM_ADD_ROLES)
    result = await team_service.add_members(
        event, body.vendor_ids, user.user_id, auto_confirm=body.auto_confirm,
    )
    return success_response(**result.to_dict())


@router.post("/resend-confirmation")
async def resend_confirmation(
    event_id: str,
    body: ResendConfirmationRequest | None = None,
    user: AuthUser = Depends(require_auth()),
):
    event = load_event(event_id)
    require_event_access(event, user, TEAM_ADD_ROLES)
    vendor_ids = [v.strip() for v in (body.vendor_ids if body else []) if v.strip()]
    result = await team_service.resend_confirmations(event, vendor_ids or None)
    return success_response(**result.to_dict())


@router.delete("/{member_id}")
async def remove_team_member(
    event_id: str,
    member_id: str,
    user: AuthUser = Depends(require_auth()),
):
    event = load_event(event_id)
    require_event_access(event, user, TEAM_MANAGE_ROLES)

    member = team_service.get_member(event_id, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Team member not found")
    if team_service.member_has_attested(event, member.vendor_id):
        raise HTTPException(
            status_code=409,
            detail="Cannot remove a team member who has signed a clock-out attestation",
        )

    team_service.remove_member(event, member, user.user_id)
    return success_response(message="Team member removed", vendor_id=member.vendor_id)
