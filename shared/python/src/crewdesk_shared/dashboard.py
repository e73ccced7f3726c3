"""
dashboard.py — State container for the vendor/team dashboard.

The dashboard's filters, open modal and vendor selection live in one
immutable DashboardState. The only way to change it is reduce(state,
action), so ordering rules (a new region invalidates the selection, closing
the invite modal clears it) are enforced in one place instead of being
spread across UI callbacks.

Usage:
    from crewdesk_shared.dashboard import DashboardState, SetRegion, ToggleVendor, reduce

    state = DashboardState()
    state = reduce(state, SetRegion("region-uuid"))
    state = reduce(state, ToggleVendor("vendor-uuid"))
    rows = visible_vendors(state, vendors, regions)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Literal, Union

from crewdesk_shared.geo import filter_vendors
from crewdesk_shared.models.regions import Region
from crewdesk_shared.models.vendors import Vendor

Modal = Literal["invite", "team", "availability", "uninvite"]
StatusFilter = Literal["all", "responded", "pending"]


@dataclass(frozen=True)
class DashboardState:
    region_id: str | None = None
    geo_filter: bool = True
    search: str = ""
    status_filter: StatusFilter = "all"
    selected: frozenset[str] = field(default_factory=frozenset)
    modal: Modal | None = None


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetRegion:
    region_id: str | None


@dataclass(frozen=True)
class ToggleGeoFilter:
    pass


@dataclass(frozen=True)
class SetSearch:
    text: str


@dataclass(frozen=True)
class SetStatusFilter:
    status: StatusFilter


@dataclass(frozen=True)
class ToggleVendor:
    vendor_id: str


@dataclass(frozen=True)
class SelectAll:
    vendor_ids: tuple[str, ...]


@dataclass(frozen=True)
class ClearSelection:
    pass


@dataclass(frozen=True)
class OpenModal:
    modal: Modal


@dataclass(frozen=True)
class CloseModal:
    pass


Action = Union[
    SetRegion,
    ToggleGeoFilter,
    SetSearch,
    SetStatusFilter,
    ToggleVendor,
    SelectAll,
    ClearSelection,
    OpenModal,
    CloseModal,
]


def reduce(state: DashboardState, action: Action) -> DashboardState:
    """Apply one action and return the next state."""
    match action:
        case SetRegion(region_id=region_id):
            if region_id == state.region_id:
                return state
            return replace(state, region_id=region_id, selected=frozenset())
        case ToggleGeoFilter():
            return replace(state, geo_filter=not state.geo_filter, selected=frozenset())
        case SetSearch(text=text):
            return replace(state, search=text.strip())
        case SetStatusFilter(status=status):
            return replace(state, status_filter=status)
        case ToggleVendor(vendor_id=vendor_id):
            return replace(state, selected=state.selected ^ {vendor_id})
        case SelectAll(vendor_ids=vendor_ids):
            return replace(state, selected=frozenset(vendor_ids))
        case ClearSelection():
            return replace(state, selected=frozenset())
        case OpenModal(modal=modal):
            return replace(state, modal=modal)
        case CloseModal():
            # The invite modal owns the selection it was opened with
            selected = frozenset() if state.modal == "invite" else state.selected
            return replace(state, modal=None, selected=selected)
        case _:
            raise TypeError(f"Unknown dashboard action: {action!r}")


def visible_vendors(
    state: DashboardState,
    vendors: Sequence[Vendor],
    regions: Sequence[Region],
) -> list[Vendor]:
    """Vendors to render for the current filters, in display order."""
    region = next((r for r in regions if r.id == state.region_id), None)
    if region is not None and not state.geo_filter:
        rows = [v for v in vendors if v.region_id == region.id]
        rows = filter_vendors(rows)
    else:
        rows = filter_vendors(vendors, region=region)

    if state.search:
        needle = state.search.lower()
        rows = [
            v for v in rows
            if needle in v.full_name.lower() or needle in (v.email or "").lower()
        ]
    if state.status_filter == "responded":
        rows = [v for v in rows if v.recently_responded]
    elif state.status_filter == "pending":
        rows = [v for v in rows if not v.recently_responded]
    return rows
