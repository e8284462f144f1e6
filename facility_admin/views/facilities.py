"""
Facilities page model.

Loads facilities and locations, then filters and summarizes them
client-side by name search, facility type and location.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..api.dashboard import DashboardAPI
from ..api.exceptions import ApiError
from ..domain import Facility, FacilityStatus, FacilityType, Location
from ..domain.base import enum_value
from ..utils.logger import get_logger

logger = get_logger(__name__)

FACILITY_TYPE_LABELS: Dict[str, str] = {
    FacilityType.GAMING_PC.value: "Gaming PC",
    FacilityType.VR.value: "VR",
    FacilityType.PS4.value: "PS4",
    FacilityType.PS5.value: "PS5",
    FacilityType.XBOX.value: "XBOX",
    FacilityType.SNOOKER_TABLE.value: "Snooker Table",
    FacilityType.TABLE_TENNIS_TABLE.value: "Table Tennis Table",
    FacilityType.FUTSAL_FIELD.value: "Futsal Field",
    FacilityType.CRICKET_PITCH.value: "Cricket Pitch",
    FacilityType.PADEL_COURT.value: "Padel Court",
    FacilityType.OTHER.value: "Other",
}


def format_facility_type(facility_type: str) -> str:
    return FACILITY_TYPE_LABELS.get(facility_type, facility_type)


def format_status(status: Union[FacilityStatus, str]) -> str:
    value = str(enum_value(status))
    return value[:1].upper() + value[1:]


@dataclass
class FacilityFilter:
    """Empty values match everything."""

    search: str = ""
    type: str = ""
    location_id: str = ""

    def matches(self, facility: Facility) -> bool:
        if self.search and self.search.lower() not in facility.name.lower():
            return False
        if self.type and facility.type != self.type:
            return False
        if self.location_id and facility.location_id != self.location_id:
            return False
        return True


@dataclass
class FacilityStats:
    total: int = 0
    active: int = 0
    maintenance: int = 0
    inactive: int = 0


def filter_facilities(facilities: List[Facility], criteria: FacilityFilter) -> List[Facility]:
    return [facility for facility in facilities if criteria.matches(facility)]


def facility_stats(facilities: List[Facility]) -> FacilityStats:
    stats = FacilityStats(total=len(facilities))
    for facility in facilities:
        if facility.status is FacilityStatus.ACTIVE:
            stats.active += 1
        elif facility.status is FacilityStatus.MAINTENANCE:
            stats.maintenance += 1
        elif facility.status is FacilityStatus.INACTIVE:
            stats.inactive += 1
    return stats


@dataclass
class FacilitiesPage:
    facilities: List[Facility] = field(default_factory=list)
    locations: List[Location] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def location_by_id(self) -> Dict[str, Location]:
        return {loc.id: loc for loc in self.locations}

    def location_name(self, facility: Facility) -> str:
        location = self.location_by_id.get(facility.location_id)
        return location.name if location else "Unknown location"

    def visible(self, criteria: FacilityFilter) -> List[Facility]:
        return filter_facilities(self.facilities, criteria)

    @property
    def stats(self) -> FacilityStats:
        return facility_stats(self.facilities)


def load_facilities_page(api: DashboardAPI) -> FacilitiesPage:
    """Fetch facilities and locations; a failure is captured as the page error."""
    page = FacilitiesPage()
    try:
        page.facilities = api.list_facilities()
        page.locations = api.list_locations()
    except ApiError as e:
        page.error = str(e) or "Failed to load facilities"
        logger.warning("Facilities page failed to load", operation="load_facilities_page", error=str(e))
    return page
