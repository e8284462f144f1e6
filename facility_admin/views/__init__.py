"""Views module - data loading and filtering behind dashboard pages"""

from .dashboard import DashboardOverview, load_overview
from .facilities import (
    FacilitiesPage,
    FacilityFilter,
    FacilityStats,
    facility_stats,
    filter_facilities,
    format_facility_type,
    format_status,
    load_facilities_page,
)
from .signup import SignupFeedback, friendly_registration_error, validate_signup

__all__ = [
    "DashboardOverview",
    "load_overview",
    "FacilitiesPage",
    "FacilityFilter",
    "FacilityStats",
    "facility_stats",
    "filter_facilities",
    "format_facility_type",
    "format_status",
    "load_facilities_page",
    "SignupFeedback",
    "friendly_registration_error",
    "validate_signup",
]
