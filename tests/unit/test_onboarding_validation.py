"""
Unit tests for the onboarding step validators.
"""

import pytest

from facility_admin.onboarding.forms import BusinessForm, FacilityForm, LocationForm
from facility_admin.onboarding.validation import (
    BUSINESS_SUMMARY,
    FACILITIES_SUMMARY,
    LATITUDE_ERROR,
    LOCATIONS_SUMMARY,
    LONGITUDE_ERROR,
    NO_LOCATIONS,
    is_valid_email,
    validate_business,
    validate_facilities,
    validate_locations,
)


def _business(**overrides):
    values = dict(
        company_name="Acme",
        contact_name="Jo",
        email="jo@acme.com",
        phone="+1",
        city="NYC",
        country="US",
        admin_password="secret1",
    )
    values.update(overrides)
    return BusinessForm(**values)


def _location(**overrides):
    values = dict(name="Downtown", city="Portland", country="US")
    values.update(overrides)
    return LocationForm(**values)


class TestValidateBusiness:
    def test_minimal_valid_business_passes(self):
        errors = validate_business(_business())

        assert not errors.has_errors

    def test_empty_company_name_blocks(self):
        errors = validate_business(_business(company_name="  "))

        assert errors.fields == {"company_name": "Company name is required"}
        assert errors.global_error == BUSINESS_SUMMARY

    def test_malformed_email_blocks(self):
        errors = validate_business(_business(email="not-an-email"))

        assert errors.fields["email"] == "Please enter a valid email address"

    def test_short_password_blocks_in_create_mode(self):
        errors = validate_business(_business(admin_password="12345"))

        assert errors.fields["admin_password"] == "Password must be at least 6 characters"

    def test_password_not_required_when_editing(self):
        errors = validate_business(_business(admin_password=""), require_password=False)

        assert not errors.has_errors

    def test_every_required_field_is_reported(self):
        errors = validate_business(BusinessForm())

        assert set(errors.fields) == {
            "company_name",
            "contact_name",
            "email",
            "phone",
            "city",
            "country",
            "admin_password",
        }

    @pytest.mark.parametrize("latitude", ["95", "-90.5", "north"])
    def test_latitude_out_of_range_or_not_numeric(self, latitude):
        errors = validate_business(_business(latitude=latitude))

        assert errors.fields == {"latitude": LATITUDE_ERROR}

    def test_longitude_out_of_range(self):
        errors = validate_business(_business(longitude="181"))

        assert errors.fields == {"longitude": LONGITUDE_ERROR}

    def test_coordinates_in_range_pass(self):
        assert not validate_business(_business(latitude="3.1478", longitude="101.69")).has_errors


class TestIsValidEmail:
    @pytest.mark.parametrize("value", ["jo@acme.com", "a.b+c@sub.example.org"])
    def test_valid(self, value):
        assert is_valid_email(value)

    @pytest.mark.parametrize("value", ["", "not-an-email", "jo@acme", "jo @acme.com", "@acme.com"])
    def test_invalid(self, value):
        assert not is_valid_email(value)


class TestValidateLocations:
    def test_latitude_outside_range_is_rejected(self):
        errors = validate_locations([_location(latitude=95)])

        assert errors.fields == {"0.latitude": LATITUDE_ERROR}
        assert errors.global_error == LOCATIONS_SUMMARY

    def test_coordinates_inside_range_pass(self):
        errors = validate_locations([_location(latitude=45.5, longitude=-122.6)])

        assert not errors.has_errors

    def test_missing_coordinates_pass(self):
        assert not validate_locations([_location()]).has_errors

    def test_errors_are_keyed_by_row(self):
        errors = validate_locations([_location(), _location(name="", country="", longitude=-200)])

        assert errors.fields == {
            "1.name": "Location name is required",
            "1.country": "Country is required",
            "1.longitude": LONGITUDE_ERROR,
        }

    def test_empty_list_is_rejected(self):
        errors = validate_locations([])

        assert errors.global_error == NO_LOCATIONS


class TestValidateFacilities:
    def test_valid_facility(self):
        facility = FacilityForm(name="Table 1", type="snooker-table", location_id="l1")

        assert not validate_facilities([facility]).has_errors

    def test_location_and_name_required(self):
        errors = validate_facilities([FacilityForm()])

        assert errors.fields == {
            "0.name": "Facility name is required",
            "0.location_id": "Location is required",
        }
        assert errors.global_error == FACILITIES_SUMMARY
