from fastapi import APIRouter

from crewdesk_api.routers.v1 import (
    events,
    invitations,
    manager_teams,
    regions,
    team,
    team_confirmation,
    time_entries,
    timesheet,
    vendors,
)

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(regions.router)
v1_router.include_router(vendors.router)
v1_router.include_router(events.router)
v1_router.include_router(team.router)
v1_router.include_router(team_confirmation.router)
v1_router.include_router(timesheet.router)
v1_router.include_router(invitations.router)
v1_router.include_router(time_entries.router)
v1_router.include_router(manager_teams.router)
