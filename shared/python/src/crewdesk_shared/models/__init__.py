"""
crewdesk_shared.models — Pydantic models matching each database table.

These models are used by:
- packages/api: validate request bodies and shape query results
- packages/pipeline: read profiles that need geocoding

Table models provide:
  .from_db_row(row: dict) -> Model
  .to_insert_dict() -> dict
"""

from crewdesk_shared.models.events import Event, TeamMember
from crewdesk_shared.models.invitations import AvailabilityEntry, VendorInvitation
from crewdesk_shared.models.regions import Region
from crewdesk_shared.models.time_entries import FormSignature, TimeEntry
from crewdesk_shared.models.vendors import Vendor

__all__ = [
    "AvailabilityEntry",
    "Event",
    "FormSignature",
    "Region",
    "TeamMember",
    "TimeEntry",
    "Vendor",
    "VendorInvitation",
]
