"""
constants.py — shared constants used across the API and pipeline.

Roles, statuses and geodesy constants are defined here so
they stay in sync between Python packages.
"""

from __future__ import annotations

from typing import Final, Literal

# ---------------------------------------------------------------------------
# Roles and divisions
# ---------------------------------------------------------------------------
# Users in these divisions show up in vendor listings
VENDOR_DIVISIONS: Final[tuple[str, ...]] = ("vendor", "both", "trailers")

# Roles allowed to add vendors to an event team they did not create
TEAM_ADD_ROLES: Final[frozenset[str]] = frozenset({"exec", "manager", "supervisor"})

# Roles allowed to remove members from an event team they did not create
TEAM_MANAGE_ROLES: Final[frozenset[str]] = frozenset(
    {"exec", "admin", "manager", "supervisor", "supervisor2"}
)

# Roles allowed to read timesheets and attestations for events they did not create
EVENT_REVIEW_ROLES: Final[frozenset[str]] = TEAM_MANAGE_ROLES | {"hr"}

# Supervisors see events created by the managers they are linked to
SUPERVISOR_ROLES: Final[frozenset[str]] = frozenset({"supervisor", "supervisor2"})

# manager_team_members administration
MANAGER_TEAM_ADMIN_ROLES: Final[frozenset[str]] = frozenset({"exec", "admin"})
TEAM_LEAD_ROLES: Final[frozenset[str]] = frozenset({"manager", "exec"})

REGION_ADMIN_ROLES: Final[frozenset[str]] = frozenset({"exec", "admin"})

# ---------------------------------------------------------------------------
# Statuses
# ---------------------------------------------------------------------------
TeamStatus = Literal["pending_confirmation", "confirmed", "declined"]
InvitationStatus = Literal["pending", "accepted", "declined", "expired"]
InvitationType = Literal["event", "bulk"]
TimeEntryAction = Literal["clock_in", "clock_out", "meal_start", "meal_end"]

# ---------------------------------------------------------------------------
# Attestations
# ---------------------------------------------------------------------------
ATTESTATION_FORM_TYPE: Final[str] = "clock_out_attestation"
ATTESTATION_FORM_PREFIX: Final[str] = "clock-out-"
# A signature this close to a clock-out counts as attesting it
ATTESTATION_MATCH_WINDOW_MINUTES: Final[int] = 15

# ---------------------------------------------------------------------------
# Geodesy
# ---------------------------------------------------------------------------
EARTH_RADIUS_KM: Final[float] = 6371.0
KM_PER_MILE: Final[float] = 1.609344

# Radius applied to every region that does not carry its own
FIXED_REGION_RADIUS_MILES: Final[float] = 200.0

# Placeholders rendered when a value cannot be displayed
TIME_PLACEHOLDER: Final[str] = "--:--"
DATE_PLACEHOLDER: Final[str] = "--"
TEXT_PLACEHOLDER: Final[str] = "N/A"

