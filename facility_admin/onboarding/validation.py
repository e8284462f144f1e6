"""
Validation gates for the onboarding wizard steps.

All functions are pure: they read form state and return a fresh
StepErrors, never touching the network or the wizard.
"""

import math
import re
from typing import Optional, Sequence

from ..domain import latitude_in_range, longitude_in_range
from .forms import BusinessForm, FacilityForm, LocationForm, StepErrors

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

BUSINESS_SUMMARY = "Please fill in all required fields."
LOCATIONS_SUMMARY = "Please complete the required fields for locations."
FACILITIES_SUMMARY = "Please complete the required fields for facilities."
NO_LOCATIONS = "Add at least one location to continue."
NO_FACILITIES = "Add at least one facility to continue."

LATITUDE_ERROR = "Latitude must be between -90 and 90"
LONGITUDE_ERROR = "Longitude must be between -180 and 180"


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


def validate_business(form: BusinessForm, require_password: bool = True) -> StepErrors:
    """
    Step 1 gate.

    Args:
        form: Business form state
        require_password: True in create mode; editing an existing business
            never asks for the admin password
    """
    errors = StepErrors()

    required = (
        ("company_name", "Company name is required"),
        ("contact_name", "Contact person is required"),
        ("email", "Email is required"),
        ("phone", "Phone is required"),
        ("city", "City is required"),
        ("country", "Country is required"),
    )
    for name, message in required:
        if _blank(getattr(form, name)):
            errors.fields[name] = message

    if "email" not in errors.fields and not is_valid_email(form.email):
        errors.fields["email"] = "Please enter a valid email address"

    if not _blank(form.latitude):
        lat = _parse_number(form.latitude.strip())
        if lat is None or not latitude_in_range(lat):
            errors.fields["latitude"] = LATITUDE_ERROR

    if not _blank(form.longitude):
        lng = _parse_number(form.longitude.strip())
        if lng is None or not longitude_in_range(lng):
            errors.fields["longitude"] = LONGITUDE_ERROR

    if require_password:
        password = form.admin_password.strip()
        if not password:
            errors.fields["admin_password"] = "Admin password is required"
        elif len(password) < MIN_PASSWORD_LENGTH:
            errors.fields["admin_password"] = (
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

    if errors.fields:
        errors.global_error = BUSINESS_SUMMARY
    return errors


def validate_locations(locations: Sequence[LocationForm]) -> StepErrors:
    """Step 2 gate."""
    errors = StepErrors()

    if not locations:
        errors.global_error = NO_LOCATIONS

    for index, loc in enumerate(locations):
        if _blank(loc.name):
            errors.fields[f"{index}.name"] = "Location name is required"
        if _blank(loc.city):
            errors.fields[f"{index}.city"] = "City is required"
        if _blank(loc.country):
            errors.fields[f"{index}.country"] = "Country is required"
        if not latitude_in_range(loc.latitude):
            errors.fields[f"{index}.latitude"] = LATITUDE_ERROR
        if not longitude_in_range(loc.longitude):
            errors.fields[f"{index}.longitude"] = LONGITUDE_ERROR

    if errors.fields and not errors.global_error:
        errors.global_error = LOCATIONS_SUMMARY
    return errors


def validate_facilities(facilities: Sequence[FacilityForm]) -> StepErrors:
    """Step 3 gate."""
    errors = StepErrors()

    if not facilities:
        errors.global_error = NO_FACILITIES

    for index, fac in enumerate(facilities):
        if _blank(fac.name):
            errors.fields[f"{index}.name"] = "Facility name is required"
        if _blank(fac.type):
            errors.fields[f"{index}.type"] = "Type is required"
        if _blank(fac.location_id):
            errors.fields[f"{index}.location_id"] = "Location is required"

    if errors.fields and not errors.global_error:
        errors.global_error = FACILITIES_SUMMARY
    return errors

