"""Links between managers and the supervisors on their team."""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from postgrest.exceptions import APIError

from crewdesk_shared.db import get_supabase_client
from crewdesk_shared.time_utils import utc_now

log = structlog.get_logger(__name__)

LINK_SELECT = "id, manager_id, member_id, is_active, assigned_at, notes"


def is_valid_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _member_details(member_ids: list[str]) -> dict[str, dict[str, Any]]:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("users")
        .select("id, email, role, division, profiles(first_name, last_name)")
        .in_("id", member_ids)
        .execute()
    )
    details = {}
    for row in result.data or []:
        profile = row.get("profiles") or {}
        if isinstance(profile, list):
            profile = profile[0] if profile else {}
        details[row["id"]] = {
            "id": row["id"],
            "email": row.get("email"),
            "role": row.get("role"),
            "division": row.get("division"),
            "first_name": profile.get("first_name"),
            "last_name": profile.get("last_name"),
        }
    return details


def list_links(manager_id: str | None = None) -> list[dict[str, Any]]:
    """Active links, each with the member's user and profile details."""
    supabase = get_supabase_client(service_role=True)
    query = supabase.table("manager_team_members").select(LINK_SELECT).eq("is_active", True)
    if manager_id:
        query = query.eq("manager_id", manager_id)
    links = query.execute().data or []

    member_ids = list(dict.fromkeys(link["member_id"] for link in links))
    members = _member_details(member_ids) if member_ids else {}
    return [
        {
            "assignment_id": link["id"],
            "manager_id": link["manager_id"],
            "member_id": link["member_id"],
            "assigned_at": link.get("assigned_at"),
            "notes": link.get("notes"),
            "member": members.get(link["member_id"]),
        }
        for link in links
    ]


def get_user_role(user_id: str) -> str | None:
    """The user's role, or None when the user does not exist."""
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("users")
        .select("id, role")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return (result.data[0].get("role") or "").lower()


def find_link(manager_id: str, member_id: str) -> dict[str, Any] | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("manager_team_members")
        .select(LINK_SELECT)
        .eq("manager_id", manager_id)
        .eq("member_id", member_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def link_member(
    manager_id: str,
    member_id: str,
    assigned_by: str,
    *,
    notes: str | None = None,
    existing: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create the link, or reactivate an inactive one."""
    now = utc_now().isoformat()
    supabase = get_supabase_client(service_role=True)
    if existing is not None:
        result = (
            supabase.table("manager_team_members")
            .update(
                {
                    "is_active": True,
                    "assigned_by": assigned_by,
                    "assigned_at": now,
                    "notes": notes or None,
                    "updated_at": now,
                }
            )
            .eq("id", existing["id"])
            .execute()
        )
    else:
        result = (
            supabase.table("manager_team_members")
            .insert(
                {
                    "manager_id": manager_id,
                    "member_id": member_id,
                    "assigned_by": assigned_by,
                    "assigned_at": now,
                    "notes": notes or None,
                    "is_active": True,
                }
            )
            .execute()
        )
    log.info(
        "manager_team_member_linked",
        manager_id=manager_id,
        member_id=member_id,
        reactivated=existing is not None,
    )
    return result.data[0] if result.data else {}


def get_link(assignment_id: str) -> dict[str, Any] | None:
    supabase = get_supabase_client(service_role=True)
    result = (
        supabase.table("manager_team_members")
        .select(LINK_SELECT)
        .eq("id", assignment_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def unlink(link: dict[str, Any], removed_by: str) -> None:
    """Soft delete: the row stays, flagged inactive."""
    now = utc_now().isoformat()
    supabase = get_supabase_client(service_role=True)
    (
        supabase.table("manager_team_members")
        .update({"is_active": False, "updated_at": now})
        .eq("id", link["id"])
        .execute()
    )
    try:
        supabase.table("audit_logs").insert(
            {
                "user_id": removed_by,
                "action": "manager_team_member_removed",
                "resource_type": "manager_team_members",
                "resource_id": link["id"],
                "metadata": {"manager_id": link.get("manager_id"), "member_id": link.get("member_id")},
                "created_at": now,
            }
        ).execute()
    except APIError as exc:
        log.warning("audit_log_write_failed", assignment_id=link["id"], error=str(exc))
    log.info("manager_team_member_unlinked", assignment_id=link["id"], removed_by=removed_by)
