"""Vendor listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from crewdesk_api.dependencies import AuthUser, require_auth
from crewdesk_api.responses import wrap_response
from crewdesk_api.services import region_service, vendor_service

router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.get("")
async def list_vendors(
    region_id: str | None = Query(None, description="Limit to one region"),
    geo_filter: bool = Query(True, description="Filter by distance instead of assigned region"),
    user: AuthUser = Depends(require_auth()),
):
    region = None
    if region_id and region_id != "all":
        region = region_service.get_region(region_id)
        if region is None:
            raise HTTPException(status_code=404, detail="Region not found")

    vendors = vendor_service.list_vendors(region=region, geo_filter=geo_filter)
    return wrap_response(
        [v.to_response() for v in vendors],
        region=region.summary() if region else None,
        geo_filter=geo_filter if region else False,
    )
