"""Manager team administration (exec and admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from crewdesk_shared.constants import MANAGER_TEAM_ADMIN_ROLES, TEAM_LEAD_ROLES

from crewdesk_api.dependencies import AuthUser, require_auth
from crewdesk_api.responses import success_response
from crewdesk_api.services import manager_team_service

router = APIRouter(prefix="/manager-teams", tags=["manager-teams"])

require_team_admin = require_auth(*MANAGER_TEAM_ADMIN_ROLES)


class LinkRequest(BaseModel):
    manager_id: str
    member_id: str
    notes: str | None = None


class UnlinkRequest(BaseModel):
    assignment_id: str


@router.get("")
async def list_team_members(
    manager_id: str | None = Query(None),
    user: AuthUser = Depends(require_team_admin),
):
    return {"team_members": manager_team_service.list_links(manager_id)}


@router.post("")
async def add_team_member(
    body: LinkRequest,
    user: AuthUser = Depends(require_team_admin),
):
    if not manager_team_service.is_valid_uuid(body.manager_id):
        raise HTTPException(status_code=400, detail="Valid manager ID is required")
    if not manager_team_service.is_valid_uuid(body.member_id):
        raise HTTPException(status_code=400, detail="Valid member ID is required")
    if body.manager_id == body.member_id:
        raise HTTPException(status_code=400, detail="Cannot assign a manager to their own team")

    manager_role = manager_team_service.get_user_role(body.manager_id)
    if manager_role is None:
        raise HTTPException(status_code=404, detail="Manager not found")
    if manager_role not in TEAM_LEAD_ROLES:
        raise HTTPException(status_code=400, detail="Target user is not a manager or exec")
    if manager_team_service.get_user_role(body.member_id) is None:
        raise HTTPException(status_code=404, detail="Member not found")

    existing = manager_team_service.find_link(body.manager_id, body.member_id)
    if existing and existing.get("is_active"):
        raise HTTPException(status_code=400, detail="This user is already on this manager's team")

    data = manager_team_service.link_member(
        body.manager_id,
        body.member_id,
        user.user_id,
        notes=body.notes,
        existing=existing,
    )
    return success_response(message="Member added to team", assignment=data)


@router.delete("")
async def remove_team_member(
    body: UnlinkRequest,
    user: AuthUser = Depends(require_team_admin),
):
    if not manager_team_service.is_valid_uuid(body.assignment_id):
        raise HTTPException(status_code=400, detail="Valid assignment ID is required")
    link = manager_team_service.get_link(body.assignment_id)
    if link is None:
        raise HTTPException(status_code=404, detail="Assignment not found")
    manager_team_service.unlink(link, user.user_id)
    return success_response(message="Member removed from team")
