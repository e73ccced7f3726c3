"""
crewdesk_shared — shared configuration, models and scheduling logic for crewdesk.

Usage:
    from crewdesk_shared.config import settings
    from crewdesk_shared.db import get_supabase_client
    from crewdesk_shared.models.regions import Region
    from crewdesk_shared.geo import resolve_region, filter_vendors
    from crewdesk_shared.availability import is_availability_active
    from crewdesk_shared.timesheet import summarize_shift
"""

__version__ = "0.1.0"
