"""
Business onboarding wizard.

Finite-state machine over the steps

    BUSINESS -> LOCATIONS [-> FACILITIES]

The two-step variant (business setup / edit) ends after locations; the
three-step variant (new business registration) adds facilities. Each
``submit_*`` call runs the step's validation gate, performs the server
round trips and advances only when every call succeeded. Validation
problems and server failures are recorded in the step's StepErrors and
never raised to the caller.
"""

from dataclasses import dataclass, field, fields
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from ..api.dashboard import DashboardAPI
from ..api.exceptions import ApiError
from ..utils.logger import get_logger, mask_email
from .forms import BusinessForm, FacilityForm, LocationForm, StepErrors
from .validation import validate_business, validate_facilities, validate_locations

logger = get_logger(__name__)

DASHBOARD_PATH = "/dashboard"
MISSING_CLIENT_MESSAGE = "Business has not been created yet. Please complete Step 1 first."
MISSING_CLIENT_ID_MESSAGE = "Client ID missing from response"


class WizardStep(IntEnum):
    BUSINESS = 1
    LOCATIONS = 2
    FACILITIES = 3


class WizardVariant(str, Enum):
    TWO_STEP = "two_step"
    THREE_STEP = "three_step"

    @property
    def last_step(self) -> WizardStep:
        return WizardStep.FACILITIES if self is WizardVariant.THREE_STEP else WizardStep.LOCATIONS


class WizardMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


@dataclass(frozen=True)
class LocationChoice:
    id: str
    name: str

    @property
    def label(self) -> str:
        return self.name or "Unnamed location"


def _editable_fields(form_cls) -> set:
    return {f.name for f in fields(form_cls)} - {"id", "client_id"}


def _initial_errors() -> Dict[WizardStep, StepErrors]:
    return {step: StepErrors() for step in WizardStep}


@dataclass
class WizardState:
    """
    Everything the wizard knows; a UI renders from this alone.

    Attributes:
        variant: Two- or three-step flow
        mode: CREATE registers a new business, EDIT updates ``client_id``
        step: Current step
        client_id: Anchor for location creation, set by a successful Step 1
        location_choices: Locations selectable in Step 3
        errors: Per-step field and global errors
        finished: True once the last step succeeded
        redirect_to: Where the UI should navigate when finished
        load_error: Failure while prefilling an existing business
    """

    variant: WizardVariant = WizardVariant.TWO_STEP
    mode: WizardMode = WizardMode.CREATE
    step: WizardStep = WizardStep.BUSINESS
    business: BusinessForm = field(default_factory=BusinessForm)
    locations: List[LocationForm] = field(default_factory=lambda: [LocationForm()])
    facilities: List[FacilityForm] = field(default_factory=lambda: [FacilityForm()])
    client_id: Optional[str] = None
    location_choices: List[LocationChoice] = field(default_factory=list)
    errors: Dict[WizardStep, StepErrors] = field(default_factory=_initial_errors)
    submitting: bool = False
    loading: bool = False
    finished: bool = False
    redirect_to: Optional[str] = None
    load_error: Optional[str] = None

    @property
    def total_steps(self) -> int:
        return int(self.variant.last_step)

    @property
    def current_errors(self) -> StepErrors:
        return self.errors[self.step]


def next_step(variant: WizardVariant, step: WizardStep) -> Optional[WizardStep]:
    """Step that follows ``step``, or None when ``step`` is the last one."""
    if step >= variant.last_step:
        return None
    return WizardStep(step + 1)


def extract_client_id(result: Any) -> Optional[str]:
    """
    Find the anchor id in a /auth/register-client response.

    Shapes are checked in order: ``user.id``, ``client.id``, ``client_id``,
    ``id``. Locations reference the owning user, so ``user.id`` wins.
    """
    if not isinstance(result, dict):
        return None

    candidates = (
        ("user.id", (result.get("user") or {}).get("id")),
        ("client.id", (result.get("client") or {}).get("id")),
        ("client_id", result.get("client_id")),
        ("id", result.get("id")),
    )
    for shape, value in candidates:
        if value:
            logger.debug(
                "Resolved client id from register response",
                operation="extract_client_id",
                context={"shape": shape},
            )
            return str(value)
    return None


class OnboardingWizard:
    """
    Drives a WizardState against the backend.

    Args:
        api: DashboardAPI used for every server round trip
        variant: Two- or three-step flow
        client_id: Existing business to edit; switches the wizard to EDIT mode
    """

    def __init__(
        self,
        api: DashboardAPI,
        variant: WizardVariant = WizardVariant.TWO_STEP,
        client_id: Optional[str] = None,
    ):
        self.api = api
        self.state = WizardState(
            variant=variant,
            mode=WizardMode.EDIT if client_id else WizardMode.CREATE,
            client_id=client_id,
        )

    @property
    def editing(self) -> bool:
        return self.state.mode is WizardMode.EDIT

    # ------------------------------------------------------------------ #
    # Edit-mode prefill
    # ------------------------------------------------------------------ #

    def load_existing(self) -> bool:
        """Prefill the business form and locations from the backend (edit mode only)."""
        if not self.editing:
            return False

        client_id = self.state.client_id
        self.state.loading = True
        self.state.load_error = None
        try:
            client = self.api.get_client(client_id)
            locations = self.api.list_locations(client_id)
        except ApiError as e:
            self.state.load_error = str(e) or "Failed to load existing business data"
            logger.warning(
                "Could not load existing business",
                operation="load_existing",
                context={"client_id": client_id},
                error=str(e),
            )
            return False
        finally:
            self.state.loading = False

        self.state.client_id = client.id or client_id
        self.state.business = BusinessForm.from_client(client)
        if locations:
            self.state.locations = [LocationForm.from_location(loc) for loc in locations]
        return True

    # ------------------------------------------------------------------ #
    # Field editing
    # ------------------------------------------------------------------ #

    def update_business(self, field_name: str, value: str) -> None:
        if field_name not in BusinessForm.field_names():
            raise ValueError(f"Unknown business field: {field_name}")
        setattr(self.state.business, field_name, value)
        self.state.errors[WizardStep.BUSINESS].clear_field(field_name)

    def update_location(self, index: int, field_name: str, value: Any) -> None:
        row = self.state.locations[index]
        key = f"{index}.{field_name}"
        errors = self.state.errors[WizardStep.LOCATIONS]
        errors.clear_field(key)

        if field_name in LocationForm.COORDINATE_FIELDS:
            try:
                value = self._parse_optional(value, float)
            except ValueError:
                errors.fields[key] = f"{field_name.capitalize()} must be a number"
                value = None
        elif field_name not in _editable_fields(LocationForm):
            raise ValueError(f"Unknown location field: {field_name}")

        setattr(row, field_name, value)

    def add_location(self) -> None:
        self.state.locations.append(LocationForm())

    def remove_location(self, index: int) -> None:
        """Remove a row; the last remaining row cannot be removed."""
        if len(self.state.locations) > 1:
            del self.state.locations[index]

    def update_facility(self, index: int, field_name: str, value: Any) -> None:
        row = self.state.facilities[index]
        key = f"{index}.{field_name}"
        errors = self.state.errors[WizardStep.FACILITIES]
        errors.clear_field(key)

        if field_name == "capacity":
            try:
                value = self._parse_optional(value, int)
            except ValueError:
                errors.fields[key] = "Capacity must be a whole number"
                value = None
        elif field_name not in _editable_fields(FacilityForm):
            raise ValueError(f"Unknown facility field: {field_name}")

        setattr(row, field_name, value)

    def add_facility(self) -> None:
        self.state.facilities.append(FacilityForm())

    def remove_facility(self, index: int) -> None:
        if len(self.state.facilities) > 1:
            del self.state.facilities[index]

    # ------------------------------------------------------------------ #
    # Navigation
    # ------------------------------------------------------------------ #

    def go_to_step(self, step: WizardStep) -> None:
        """
        Move back to an earlier (or the current) step. Entered values are kept.

        Raises:
            ValueError: If ``step`` is ahead of the current step; forward
                movement only happens through a successful submit
        """
        step = WizardStep(step)
        if step > self.state.step:
            raise ValueError(f"Cannot skip ahead to step {int(step)}")
        self.state.step = step

    def submit(self) -> bool:
        """Submit whichever step is current."""
        handlers = {
            WizardStep.BUSINESS: self.submit_business,
            WizardStep.LOCATIONS: self.submit_locations,
            WizardStep.FACILITIES: self.submit_facilities,
        }
        return handlers[self.state.step]()

    # ------------------------------------------------------------------ #
    # Step submissions
    # ------------------------------------------------------------------ #

    def submit_business(self) -> bool:
        state = self.state
        errors = validate_business(state.business, require_password=not self.editing)
        state.errors[WizardStep.BUSINESS] = errors
        if errors.has_errors:
            return False

        context = {"mode": state.mode.value, "email": mask_email(state.business.email)}
        state.submitting = True
        try:
            if self.editing:
                self.api.update_client(state.client_id, state.business.to_update_payload())
                client_id = state.client_id
            else:
                user, client = state.business.to_register_payload()
                client_id = extract_client_id(self.api.register_client(user, client))
                if not client_id:
                    raise ApiError(MISSING_CLIENT_ID_MESSAGE)
        except ApiError as e:
            default = "Failed to update business" if self.editing else "Failed to create business"
            state.errors[WizardStep.BUSINESS] = StepErrors(global_error=str(e) or default)
            logger.warning("Business submission failed", operation="submit_business", context=context, error=str(e))
            return False
        finally:
            state.submitting = False

        state.client_id = client_id
        logger.info("Business saved", operation="submit_business", context={**context, "client_id": client_id})
        return self._advance()

    def submit_locations(self) -> bool:
        state = self.state
        if not state.client_id:
            state.errors[WizardStep.BUSINESS] = StepErrors(global_error=MISSING_CLIENT_MESSAGE)
            state.step = WizardStep.BUSINESS
            return False

        errors = validate_locations(state.locations)
        state.errors[WizardStep.LOCATIONS] = errors
        if errors.has_errors:
            return False

        created: List[LocationChoice] = []
        state.submitting = True
        try:
            for row in state.locations:
                if row.id:
                    continue
                location = self.api.create_location(row.to_payload(state.client_id))
                row.id = location.id
                row.client_id = state.client_id
                created.append(LocationChoice(id=location.id, name=location.name))
        except ApiError as e:
            state.errors[WizardStep.LOCATIONS] = StepErrors(
                global_error=str(e) or "Failed to save locations"
            )
            logger.warning(
                "Location creation failed",
                operation="submit_locations",
                context={"client_id": state.client_id, "created": len(created)},
                error=str(e),
            )
            return False
        finally:
            state.submitting = False

        logger.info(
            "Locations saved",
            operation="submit_locations",
            context={"client_id": state.client_id, "created": len(created)},
        )

        if state.variant is WizardVariant.THREE_STEP:
            self._offer_location_choices(created)
        return self._advance()

    def submit_facilities(self) -> bool:
        state = self.state
        errors = validate_facilities(state.facilities)
        state.errors[WizardStep.FACILITIES] = errors
        if errors.has_errors:
            return False

        state.submitting = True
        try:
            for row in state.facilities:
                if row.id:
                    continue
                facility = self.api.create_facility(row.to_payload())
                row.id = facility.id
        except ApiError as e:
            state.errors[WizardStep.FACILITIES] = StepErrors(
                global_error=str(e) or "Failed to create facilities"
            )
            logger.warning("Facility creation failed", operation="submit_facilities", error=str(e))
            return False
        finally:
            state.submitting = False

        return self._advance()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _advance(self) -> bool:
        following = next_step(self.state.variant, self.state.step)
        if following is None:
            self.state.finished = True
            self.state.redirect_to = DASHBOARD_PATH
            logger.info(
                "Onboarding finished",
                operation="onboarding",
                context={"client_id": self.state.client_id, "mode": self.state.mode.value},
            )
        else:
            self.state.step = following
        return True

    def _offer_location_choices(self, created: List[LocationChoice]) -> None:
        created_ids = {choice.id for choice in created}
        existing = [
            LocationChoice(id=row.id, name=row.name)
            for row in self.state.locations
            if row.id and row.id not in created_ids
        ]
        self.state.location_choices = created + existing
        if not self.state.location_choices:
            return

        default_id = self.state.location_choices[0].id
        for row in self.state.facilities:
            if not row.location_id:
                row.location_id = default_id

    @staticmethod
    def _parse_optional(value: Any, cast):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return cast(value)
