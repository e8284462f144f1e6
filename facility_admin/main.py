"""
Command-line entry point for the facility admin client.

Every command prints JSON on stdout. Failures print the error message on
stderr and exit non-zero.

Usage:
    facility-admin login [--email EMAIL] [--password PASSWORD]
    facility-admin profile
    facility-admin clients [--status pending]
    facility-admin client-action approve CLIENT_ID
    facility-admin overview
    facility-admin facilities [--search ...] [--type ...] [--location-id ...]
    facility-admin signup NAME EMAIL --password PASSWORD --confirm-password PASSWORD
    facility-admin onboard config/onboarding.example.yaml
"""

import argparse
import json
import sys
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .api.dashboard import DashboardAPI
from .api.exceptions import ApiError
from .auth.modules import resolve_visible_modules
from .auth.token_store import TokenStoreError
from .config.settings import ConfigurationError, Settings, setup_logging_redaction
from .domain import ClientStatus
from .onboarding import OnboardingWizard, WizardStep, WizardVariant
from .utils.logger import get_logger
from .views import (
    FacilityFilter,
    format_facility_type,
    format_status,
    friendly_registration_error,
    load_facilities_page,
    load_overview,
    validate_signup,
)

logger = get_logger(__name__)

CLIENT_ACTIONS = ("approve", "reject", "suspend", "activate")


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(str(v.value if hasattr(v, "value") else v) for v in value)
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def _emit(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), ensure_ascii=False, indent=2, default=str))


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="facility-admin",
        description="Administrative client for the facility-booking platform.",
    )
    parser.add_argument(
        "--config",
        help="YAML configuration file (default: $FACILITY_ADMIN_CONFIG or config/dashboard.yaml).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Sign in and store the token pair.")
    login.add_argument("--email", help="Login email (default: configured admin credentials).")
    login.add_argument("--password", help="Login password (default: configured admin credentials).")

    subparsers.add_parser("logout", help="Revoke the session and clear stored tokens.")
    subparsers.add_parser("profile", help="Show the signed-in user and visible modules.")
    subparsers.add_parser("overview", help="Show the dashboard overview for the signed-in user.")

    signup = subparsers.add_parser("signup", help="Create a self-service user account.")
    signup.add_argument("name")
    signup.add_argument("email")
    signup.add_argument("--password", required=True)
    signup.add_argument("--confirm-password", required=True)

    clients = subparsers.add_parser("clients", help="List business clients.")
    clients.add_argument("--status", choices=[s.value for s in ClientStatus])

    action = subparsers.add_parser("client-action", help="Change a client's lifecycle status.")
    action.add_argument("action", choices=CLIENT_ACTIONS)
    action.add_argument("client_id")
    action.add_argument("--reason", help="Required for reject and suspend.")

    facilities = subparsers.add_parser("facilities", help="List facilities with their location names.")
    facilities.add_argument("--search")
    facilities.add_argument("--type")
    facilities.add_argument("--location-id")

    onboard = subparsers.add_parser("onboard", help="Run the onboarding wizard from a YAML document.")
    onboard.add_argument("document", help="YAML file with business, locations and facilities.")

    return parser.parse_args(argv)


# ---------------------------------------------------------------------- #
# Onboarding driver
# ---------------------------------------------------------------------- #


def _fill_rows(rows: List[Dict[str, Any]], existing: int, add, update) -> None:
    for offset, row in enumerate(rows):
        index = existing + offset
        if offset > 0 or existing > 0:
            add()
        for field_name, value in row.items():
            update(index, field_name, value)


def run_onboarding(api: DashboardAPI, document: Dict[str, Any]) -> OnboardingWizard:
    """
    Drive the wizard through every step from a declarative document.

    Stops at the first step that fails; its errors are left in the state.
    """
    variant = WizardVariant(document.get("variant", WizardVariant.TWO_STEP.value))
    wizard = OnboardingWizard(api, variant=variant, client_id=document.get("client_id"))
    state = wizard.state

    if wizard.editing and not wizard.load_existing():
        return wizard

    for field_name, value in (document.get("business") or {}).items():
        wizard.update_business(field_name, "" if value is None else str(value))

    existing_locations = sum(1 for row in state.locations if row.id)
    _fill_rows(
        document.get("locations") or [],
        existing_locations,
        wizard.add_location,
        wizard.update_location,
    )
    _fill_rows(document.get("facilities") or [], 0, wizard.add_facility, wizard.update_facility)

    while not state.finished:
        if not wizard.submit():
            break
    return wizard


def _wizard_summary(wizard: OnboardingWizard) -> Dict[str, Any]:
    state = wizard.state
    return {
        "finished": state.finished,
        "step": int(state.step),
        "client_id": state.client_id,
        "redirect_to": state.redirect_to,
        "load_error": state.load_error,
        "errors": {
            step.name.lower(): asdict(state.errors[step])
            for step in WizardStep
            if state.errors[step].has_errors
        },
    }


# ---------------------------------------------------------------------- #
# Commands
# ---------------------------------------------------------------------- #


def run_command(args: argparse.Namespace, settings: Settings, api: DashboardAPI) -> int:
    if args.command == "login":
        credentials = (
            {"email": args.email, "password": args.password}
            if args.email and args.password
            else settings.load_admin_credentials()
        )
        redaction = setup_logging_redaction(credentials)
        tokens = api.login(email=credentials["email"], password=credentials["password"])
        redaction.add_secret(tokens.access_token)
        redaction.add_secret(tokens.refresh_token)
        _emit({"logged_in": True, "has_refresh_token": bool(tokens.refresh_token)})
        return 0

    if args.command == "logout":
        api.logout()
        _emit({"logged_out": True})
        return 0

    if args.command == "profile":
        profile = api.get_profile()
        _emit(
            {
                "profile": profile.to_dict(),
                "visible_modules": resolve_visible_modules(profile.role, profile.modules),
            }
        )
        return 0

    if args.command == "clients":
        _emit(api.list_clients(status=args.status))
        return 0

    if args.command == "client-action":
        if args.action in ("reject", "suspend") and not args.reason:
            print(f"--reason is required for {args.action}", file=sys.stderr)
            return 2
        handler = getattr(api, f"{args.action}_client")
        if args.action in ("reject", "suspend"):
            _emit(handler(args.client_id, args.reason))
        else:
            _emit(handler(args.client_id))
        return 0

    if args.command == "overview":
        overview = load_overview(api, api.get_profile())
        _emit(
            {
                "visible_modules": overview.modules,
                "bookings": len(overview.bookings),
                "bookings_by_status": overview.bookings_by_status(),
                "gaming_centers": [center.name for center in overview.gaming_centers],
                "client_stats": overview.client_stats,
                "errors": overview.errors,
            }
        )
        return 0

    if args.command == "facilities":
        page = load_facilities_page(api)
        if page.error:
            print(page.error, file=sys.stderr)
            return 1
        criteria = FacilityFilter(
            search=args.search or "", type=args.type or "", location_id=args.location_id or ""
        )
        _emit(
            {
                "facilities": [
                    {
                        "id": facility.id,
                        "name": facility.name,
                        "type": format_facility_type(facility.type),
                        "status": format_status(facility.status),
                        "location": page.location_name(facility),
                        "capacity": facility.capacity,
                    }
                    for facility in page.visible(criteria)
                ],
                "stats": page.stats,
            }
        )
        return 0

    if args.command == "signup":
        problem = validate_signup(args.password, args.confirm_password)
        if problem:
            print(problem, file=sys.stderr)
            return 2
        try:
            api.register(args.name, args.email, args.password)
        except ApiError as e:
            feedback = friendly_registration_error(str(e))
            print(feedback.error, file=sys.stderr)
            if feedback.hint:
                print(feedback.hint, file=sys.stderr)
            return 1
        _emit({"registered": True, "email": args.email})
        return 0

    if args.command == "onboard":
        with open(args.document, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
        wizard = run_onboarding(api, document)
        _emit(_wizard_summary(wizard))
        return 0 if wizard.state.finished else 1

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = Settings(config_path=args.config)
        api = settings.build_api()
        return run_command(args, settings, api)
    except (ApiError, ConfigurationError, TokenStoreError, RuntimeError, OSError, yaml.YAMLError) as e:
        logger.error("Command failed", operation=args.command, error=str(e))
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
