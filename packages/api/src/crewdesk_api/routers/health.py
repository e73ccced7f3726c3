"""Liveness and readiness checks."""

from __future__ import annotations

import httpx
import structlog
from fastapi import APIRouter
from postgrest.exceptions import APIError

from crewdesk_shared import __version__
from crewdesk_shared.db import get_supabase_client

from crewdesk_api.responses import error_response

log = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": __version__}


@router.get("/ready")
async def ready():
    """Ready once Supabase answers a trivial regions query."""
    try:
        supabase = get_supabase_client(service_role=True)
        supabase.table("regions").select("id").limit(1).execute()
    except (APIError, RuntimeError, httpx.HTTPError) as exc:
        log.warning("readiness_check_failed", error=str(exc))
        return error_response("Database unavailable", 503)
    return {"status": "ready"}
