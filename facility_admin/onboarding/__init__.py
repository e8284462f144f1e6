"""Onboarding module - multi-step business registration wizard"""

from .forms import BusinessForm, FacilityForm, LocationForm, StepErrors
from .validation import validate_business, validate_facilities, validate_locations
from .wizard import (
    LocationChoice,
    OnboardingWizard,
    WizardMode,
    WizardState,
    WizardStep,
    WizardVariant,
    extract_client_id,
    next_step,
)

__all__ = [
    "BusinessForm",
    "FacilityForm",
    "LocationForm",
    "StepErrors",
    "validate_business",
    "validate_facilities",
    "validate_locations",
    "LocationChoice",
    "OnboardingWizard",
    "WizardMode",
    "WizardState",
    "WizardStep",
    "WizardVariant",
    "extract_client_id",
    "next_step",
]
