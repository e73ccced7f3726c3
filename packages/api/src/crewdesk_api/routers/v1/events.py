"""Event endpoints: CRUD, available vendors and per-event invitations."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from crewdesk_shared.constants import TEAM_ADD_ROLES
from crewdesk_shared.models.events import Event

from crewdesk_api.dependencies import (
    AuthUser,
    load_event,
    load_owned_event,
    require_auth,
    require_event_access,
)
from crewdesk_api.responses import success_response, wrap_response
from crewdesk_api.services import event_service, invitation_service, region_service, vendor_service

router = APIRouter(prefix="/events", tags=["events"])


class EventCreate(BaseModel):
    event_name: str = Field(min_length=1)
    venue: str = Field(min_length=1)
    event_date: date
    start_time: str = Field(min_length=1)
    end_time: str = Field(min_length=1)
    artist: str | None = None
    city: str | None = None
    state: str | None = None
    ends_next_day: bool = False
    required_staff: int | None = Field(None, ge=0)
    ticket_sales: int | None = Field(None, ge=0)


class EventUpdate(BaseModel):
    event_name: str | None = Field(None, min_length=1)
    artist: str | None = None
    venue: str | None = Field(None, min_length=1)
    city: str | None = None
    state: str | None = None
    event_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    ends_next_day: bool | None = None
    required_staff: int | None = Field(None, ge=0)
    confirmed_staff: int | None = Field(None, ge=0)
    ticket_sales: int | None = Field(None, ge=0)
    is_active: bool | None = None


class InviteVendorsRequest(BaseModel):
    vendor_ids: list[str] = Field(min_length=1)


@router.get("")
async def list_events(
    is_active: bool | None = Query(None),
    user: AuthUser = Depends(require_auth()),
):
    return wrap_response(event_service.list_events(user, is_active=is_active))


@router.post("", status_code=201)
async def create_event(
    body: EventCreate,
    user: AuthUser = Depends(require_auth()),
):
    event = Event(**body.model_dump(), created_by=user.user_id)
    return wrap_response(event_service.create_event(event))


@router.get("/{event_id}")
async def get_event(event_id: str, user: AuthUser = Depends(require_auth())):
    event = load_owned_event(event_id, user)
    return wrap_response(event.model_dump(mode="json"))


@router.put("/{event_id}")
async def update_event(
    event_id: str,
    body: EventUpdate,
    user: AuthUser = Depends(require_auth()),
):
    load_owned_event(event_id, user)
    changes = body.model_dump(mode="json", exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    data = event_service.update_event(event_id, changes)
    if data is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return wrap_response(data)


@router.get("/{event_id}/available-vendors")
async def available_vendors(
    event_id: str,
    region_id: str | None = Query(None),
    user: AuthUser = Depends(require_auth()),
):
    event = load_event(event_id)
    require_event_access(event, user, TEAM_ADD_ROLES)

    region = None
    if region_id and region_id != "all":
        region = region_service.get_region(region_id)
        if region is None:
            raise HTTPException(status_code=404, detail="Region not found")

    result = vendor_service.available_vendors(event, region=region)
    return wrap_response(
        [v.to_response() for v in result["vendors"]],
        venue=result["venue"],
        region=region.summary() if region else None,
        event_date=event.event_date.isoformat() if event.event_date else None,
    )


@router.post("/{event_id}/invite-vendors")
async def invite_vendors(
    event_id: str,
    body: InviteVendorsRequest,
    user: AuthUser = Depends(require_auth()),
):
    event = load_event(event_id)
    require_event_access(event, user, TEAM_ADD_ROLES)
    outcome = await invitation_service.invite_to_event(event, body.vendor_ids, user.user_id)
    return success_response(**outcome.to_dict())
