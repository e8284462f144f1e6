"""
Unit tests for the onboarding wizard state machine.

DashboardAPI is mocked; the tests drive the wizard the way a UI would
(field edits, submit, back navigation) and inspect WizardState.
"""

from unittest.mock import Mock

import pytest

from facility_admin.api.dashboard import DashboardAPI
from facility_admin.api.exceptions import ApiConnectionError, ApiRequestError
from facility_admin.domain import ClientProfile, Facility, Location
from facility_admin.onboarding import (
    OnboardingWizard,
    WizardMode,
    WizardStep,
    WizardVariant,
    extract_client_id,
    next_step,
)
from facility_admin.onboarding.wizard import MISSING_CLIENT_ID_MESSAGE, MISSING_CLIENT_MESSAGE

BUSINESS = {
    "company_name": "Acme",
    "contact_name": "Jo",
    "email": "jo@acme.com",
    "phone": "+1",
    "city": "NYC",
    "country": "US",
    "admin_password": "secret1",
}


def _created_location(payload, location_id):
    return Location(id=location_id, client_id=payload["client_id"], name=payload["name"])


@pytest.fixture
def api():
    api = Mock(spec=DashboardAPI)
    api.register_client.return_value = {"user": {"id": "user-1"}, "client": {"id": "client-1"}}
    counter = iter(range(1, 100))
    api.create_location.side_effect = lambda payload: _created_location(payload, f"loc-{next(counter)}")
    api.create_facility.side_effect = lambda payload: Facility(
        id=f"fac-{payload['name']}", location_id=payload["location_id"], name=payload["name"], type=payload["type"]
    )
    return api


def _fill_business(wizard, **overrides):
    for name, value in {**BUSINESS, **overrides}.items():
        wizard.update_business(name, value)


def _fill_location(wizard, index, name="Downtown", city="Portland", country="US"):
    wizard.update_location(index, "name", name)
    wizard.update_location(index, "city", city)
    wizard.update_location(index, "country", country)


class TestHelpers:
    @pytest.mark.parametrize(
        "result,expected",
        [
            ({"user": {"id": "u1"}, "client": {"id": "c1"}, "client_id": "x", "id": "y"}, "u1"),
            ({"client": {"id": "c1"}, "client_id": "x"}, "c1"),
            ({"client_id": "x", "id": "y"}, "x"),
            ({"id": 42}, "42"),
            ({"user": None, "message": "ok"}, None),
            (None, None),
        ],
    )
    def test_extract_client_id(self, result, expected):
        assert extract_client_id(result) == expected

    def test_next_step(self):
        assert next_step(WizardVariant.TWO_STEP, WizardStep.BUSINESS) is WizardStep.LOCATIONS
        assert next_step(WizardVariant.TWO_STEP, WizardStep.LOCATIONS) is None
        assert next_step(WizardVariant.THREE_STEP, WizardStep.LOCATIONS) is WizardStep.FACILITIES
        assert next_step(WizardVariant.THREE_STEP, WizardStep.FACILITIES) is None


class TestBusinessStep:
    def test_valid_business_creates_client_and_advances(self, api):
        wizard = OnboardingWizard(api)
        _fill_business(wizard)

        assert wizard.submit() is True

        assert wizard.state.step is WizardStep.LOCATIONS
        assert wizard.state.client_id == "user-1"
        user, client = api.register_client.call_args.args
        assert user == {"name": "Jo", "email": "jo@acme.com", "password": "secret1"}
        assert client["company_name"] == "Acme"
        assert client["latitude"] is None

    def test_invalid_business_does_not_call_backend(self, api):
        wizard = OnboardingWizard(api)
        _fill_business(wizard, email="not-an-email")

        assert wizard.submit() is False

        assert wizard.state.step is WizardStep.BUSINESS
        assert "email" in wizard.state.current_errors.fields
        api.register_client.assert_not_called()

    def test_editing_a_field_clears_only_its_error(self, api):
        wizard = OnboardingWizard(api)
        wizard.submit()

        wizard.update_business("company_name", "Acme")

        errors = wizard.state.errors[WizardStep.BUSINESS]
        assert "company_name" not in errors.fields
        assert "email" in errors.fields
        assert errors.global_error is not None

    def test_unknown_field_raises(self, api):
        with pytest.raises(ValueError):
            OnboardingWizard(api).update_business("website", "acme.com")

    def test_server_error_is_shown_as_global_error(self, api):
        api.register_client.side_effect = ApiRequestError("User with this email already exists", 409)
        wizard = OnboardingWizard(api)
        _fill_business(wizard)

        assert wizard.submit() is False

        assert wizard.state.step is WizardStep.BUSINESS
        assert wizard.state.current_errors.global_error == "User with this email already exists"
        assert wizard.state.submitting is False

    def test_response_without_client_id_blocks(self, api):
        api.register_client.return_value = {"message": "created"}
        wizard = OnboardingWizard(api)
        _fill_business(wizard)

        assert wizard.submit() is False

        assert wizard.state.current_errors.global_error == MISSING_CLIENT_ID_MESSAGE
        assert wizard.state.client_id is None


class TestLocationsStep:
    def test_missing_client_id_returns_to_business_step(self, api):
        wizard = OnboardingWizard(api)
        wizard.state.step = WizardStep.LOCATIONS
        _fill_location(wizard, 0)

        assert wizard.submit() is False

        assert wizard.state.step is WizardStep.BUSINESS
        assert wizard.state.current_errors.global_error == MISSING_CLIENT_MESSAGE
        api.create_location.assert_not_called()

    def test_removing_last_location_is_a_noop(self, api):
        wizard = OnboardingWizard(api)

        wizard.remove_location(0)

        assert len(wizard.state.locations) == 1

    def test_add_and_remove_rows(self, api):
        wizard = OnboardingWizard(api)
        wizard.add_location()
        wizard.update_location(1, "name", "Second")

        wizard.remove_location(0)

        assert [row.name for row in wizard.state.locations] == ["Second"]

    def test_non_numeric_coordinate_sets_field_error(self, api):
        wizard = OnboardingWizard(api)

        wizard.update_location(0, "latitude", "abc")

        assert wizard.state.locations[0].latitude is None
        assert wizard.state.errors[WizardStep.LOCATIONS].fields["0.latitude"] == "Latitude must be a number"

        wizard.update_location(0, "latitude", "45.5")
        assert wizard.state.locations[0].latitude == 45.5
        assert "0.latitude" not in wizard.state.errors[WizardStep.LOCATIONS].fields

    def test_protected_fields_cannot_be_edited(self, api):
        with pytest.raises(ValueError):
            OnboardingWizard(api).update_location(0, "client_id", "other")

    def test_two_step_flow_finishes_after_locations(self, api):
        wizard = OnboardingWizard(api)
        _fill_business(wizard)
        wizard.submit()
        _fill_location(wizard, 0)

        assert wizard.submit() is True

        assert wizard.state.finished
        assert wizard.state.redirect_to == "/dashboard"
        payload = api.create_location.call_args.args[0]
        assert payload["client_id"] == "user-1"
        assert wizard.state.locations[0].id == "loc-1"

    def test_partial_failure_is_not_duplicated_on_retry(self, api):
        created = Location(id="loc-1", client_id="user-1", name="Downtown")
        api.create_location.side_effect = [created, ApiConnectionError("timeout"), Location(id="loc-2", client_id="user-1", name="Uptown")]
        wizard = OnboardingWizard(api)
        wizard.state.client_id = "user-1"
        wizard.state.step = WizardStep.LOCATIONS
        _fill_location(wizard, 0)
        wizard.add_location()
        _fill_location(wizard, 1, name="Uptown")

        assert wizard.submit() is False
        assert wizard.state.current_errors.global_error == "timeout"

        assert wizard.submit() is True
        assert api.create_location.call_count == 3
        assert api.create_location.call_args.args[0]["name"] == "Uptown"

    def test_back_navigation_keeps_values_and_forward_jump_is_rejected(self, api):
        wizard = OnboardingWizard(api)
        _fill_business(wizard)
        wizard.submit()

        wizard.go_to_step(WizardStep.BUSINESS)

        assert wizard.state.business.company_name == "Acme"
        with pytest.raises(ValueError):
            wizard.go_to_step(WizardStep.LOCATIONS)


class TestEditMode:
    @pytest.fixture
    def edit_api(self, api):
        api.get_client.return_value = ClientProfile(
            id="client-1",
            company_name="Acme",
            email="jo@acme.com",
            phone="+1",
            city="NYC",
            country="US",
            latitude=40.7,
            user={"name": "Jo", "email": "jo@acme.com"},
        )
        api.list_locations.return_value = [
            Location(id="loc-existing", client_id="client-1", name="HQ", city="NYC", country="US")
        ]
        api.update_client.return_value = api.get_client.return_value
        return api

    def test_load_existing_prefills_forms(self, edit_api):
        wizard = OnboardingWizard(edit_api, client_id="client-1")

        assert wizard.state.mode is WizardMode.EDIT
        assert wizard.load_existing() is True

        business = wizard.state.business
        assert (business.company_name, business.contact_name, business.latitude) == ("Acme", "Jo", "40.7")
        assert business.admin_password == ""
        assert wizard.state.locations[0].id == "loc-existing"
        edit_api.list_locations.assert_called_once_with("client-1")

    def test_load_failure_is_reported(self, edit_api):
        edit_api.get_client.side_effect = ApiRequestError("Client not found", 404)
        wizard = OnboardingWizard(edit_api, client_id="client-9")

        assert wizard.load_existing() is False

        assert wizard.state.load_error == "Client not found"
        assert wizard.state.loading is False

    def test_existing_locations_are_not_recreated(self, edit_api):
        wizard = OnboardingWizard(edit_api, client_id="client-1")
        wizard.load_existing()

        assert wizard.submit() is True
        edit_api.update_client.assert_called_once()
        assert edit_api.update_client.call_args.args[0] == "client-1"
        edit_api.register_client.assert_not_called()

        wizard.add_location()
        _fill_location(wizard, 1, name="Annex")
        assert wizard.submit() is True

        edit_api.create_location.assert_called_once()
        assert edit_api.create_location.call_args.args[0]["name"] == "Annex"


class TestEditModeResponses:
    """Real DashboardAPI over a mocked session, so response bodies go through domain conversion."""

    @pytest.fixture
    def wizard(self, dashboard_api):
        wizard = OnboardingWizard(dashboard_api, client_id="client-1")
        _fill_business(wizard, admin_password="")
        return wizard

    def test_update_without_body_advances(self, wizard, http_session, make_response):
        http_session.request.return_value = make_response(204)

        assert wizard.submit() is True

        assert wizard.state.step is WizardStep.LOCATIONS
        assert wizard.state.client_id == "client-1"
        assert http_session.request.call_args.args[:2] == ("PATCH", "http://api.test/clients/client-1")

    def test_update_body_without_id_advances(self, wizard, http_session, make_response):
        http_session.request.return_value = make_response(200, {"company_name": "Acme"})

        assert wizard.submit() is True

        assert wizard.state.step is WizardStep.LOCATIONS
        assert not wizard.state.errors[WizardStep.BUSINESS].has_errors

    def test_created_location_without_id_is_a_step_error(self, wizard, http_session, make_response):
        http_session.request.side_effect = [make_response(204), make_response(201, {"name": "Downtown"})]
        assert wizard.submit() is True
        _fill_location(wizard, 0)

        assert wizard.submit() is False

        assert wizard.state.step is WizardStep.LOCATIONS
        assert "missing an id" in wizard.state.errors[WizardStep.LOCATIONS].global_error
        assert wizard.state.locations[0].id is None


class TestThreeStepFlow:
    def test_facilities_default_to_first_created_location(self, api):
        wizard = OnboardingWizard(api, variant=WizardVariant.THREE_STEP)
        _fill_business(wizard)
        wizard.submit()
        _fill_location(wizard, 0, name="Downtown")
        wizard.add_location()
        _fill_location(wizard, 1, name="Uptown")

        assert wizard.submit() is True

        assert wizard.state.step is WizardStep.FACILITIES
        assert [c.label for c in wizard.state.location_choices] == ["Downtown", "Uptown"]
        assert wizard.state.facilities[0].location_id == "loc-1"

        wizard.update_facility(0, "name", "Table 1")
        wizard.update_facility(0, "type", "snooker-table")
        wizard.update_facility(0, "capacity", "4")
        wizard.add_facility()
        wizard.update_facility(1, "name", "Court A")
        wizard.update_facility(1, "location_id", "loc-2")

        assert wizard.submit() is True

        assert wizard.state.finished
        first, second = [c.args[0] for c in api.create_facility.call_args_list]
        assert first == {
            "name": "Table 1",
            "type": "snooker-table",
            "status": "active",
            "location_id": "loc-1",
            "capacity": 4,
            "metadata": None,
        }
        assert second["location_id"] == "loc-2"

    def test_facility_failure_keeps_wizard_on_step(self, api):
        api.create_facility.side_effect = ApiRequestError("Invalid facility type", 400)
        wizard = OnboardingWizard(api, variant=WizardVariant.THREE_STEP)
        wizard.state.client_id = "user-1"
        wizard.state.step = WizardStep.FACILITIES
        wizard.update_facility(0, "name", "Thing")
        wizard.update_facility(0, "location_id", "loc-1")

        assert wizard.submit() is False

        assert not wizard.state.finished
        assert wizard.state.current_errors.global_error == "Invalid facility type"

    def test_bad_capacity_sets_field_error(self, api):
        wizard = OnboardingWizard(api, variant=WizardVariant.THREE_STEP)

        wizard.update_facility(0, "capacity", "four")

        assert wizard.state.facilities[0].capacity is None
        assert wizard.state.errors[WizardStep.FACILITIES].fields["0.capacity"] == "Capacity must be a whole number"
