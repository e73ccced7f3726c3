"""Region endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from crewdesk_shared.constants import REGION_ADMIN_ROLES

from crewdesk_api.dependencies import AuthUser, require_auth
from crewdesk_api.responses import wrap_response
from crewdesk_api.services import region_service

router = APIRouter(prefix="/regions", tags=["regions"])


class RegionCreate(BaseModel):
    name: str = Field(min_length=1)
    center_lat: float = Field(ge=-90, le=90)
    center_lng: float = Field(ge=-180, le=180)
    description: str | None = None


@router.get("")
async def list_regions(
    with_vendor_count: bool = Query(False),
    include_inactive: bool = Query(False),
    user: AuthUser = Depends(require_auth()),
):
    regions = region_service.list_regions(include_inactive=include_inactive)
    data = [r.model_dump(mode="json") | {"radius_miles": r.effective_radius_miles} for r in regions]
    if with_vendor_count:
        counts = region_service.vendor_counts()
        for row in data:
            row["vendor_count"] = counts.get(row["id"], 0)
    return wrap_response(data)


@router.post("", status_code=201)
async def create_region(
    body: RegionCreate,
    user: AuthUser = Depends(require_auth(*REGION_ADMIN_ROLES)),
):
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Region name is required")
    data = region_service.create_region(
        name=body.name,
        center_lat=body.center_lat,
        center_lng=body.center_lng,
        description=body.description,
        created_by=user.user_id,
    )
    return wrap_response(data)


@router.get("/resolve")
async def resolve_region(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    user: AuthUser = Depends(require_auth()),
):
    region = region_service.resolve_point(lat, lng)
    return wrap_response(region.summary() if region else None)
