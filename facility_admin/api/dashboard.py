"""
Typed resource operations for the dashboard backend.

Each method is a thin caller of ApiClient.request() with a fixed path
template; responses are converted to domain dataclasses. Optional filters
only reach the query string when they are non-empty.
"""

from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Union

from ..domain import (
    Booking,
    ClientProfile,
    ClientStatistics,
    ClientStatus,
    Facility,
    GamingCenter,
    Location,
    TokenPair,
    UserProfile,
)
from ..domain.base import drop_none, enum_value
from ..utils.logger import get_logger, log_operation, mask_email
from .client import ApiClient
from .exceptions import ApiError

logger = get_logger(__name__)


def _query(**filters: Optional[str]) -> Optional[Dict[str, str]]:
    params = {key: value for key, value in filters.items() if value}
    return params or None


def _created_record(data: Any, kind: str) -> Dict[str, Any]:
    """Body of a create call; later steps need its server id."""
    if not isinstance(data, dict) or not data.get("id"):
        raise ApiError(f"Created {kind} response is missing an id")
    return data


class DashboardAPI:
    """
    Resource-level client used by the wizard, views and CLI.

    Args:
        client: Authenticated ApiClient
    """

    def __init__(self, client: ApiClient):
        self.client = client

    # ------------------------------------------------------------------ #
    # Auth
    # ------------------------------------------------------------------ #

    @log_operation("login")
    def login(self, email: str, password: str) -> TokenPair:
        """Authenticate and persist the returned token pair."""
        data = self.client.request(
            "/auth/login", "POST", json={"email": email, "password": password}
        )
        try:
            tokens = TokenPair.from_response(data)
        except ValueError as e:
            raise ApiError(str(e)) from e
        self.client.store_tokens(tokens)
        logger.info("Logged in", operation="login", context={"email": mask_email(email)})
        return tokens

    def logout(self) -> None:
        """Revoke the refresh token server-side; local tokens are cleared regardless."""
        refresh_token = self.client.token_store.get_refresh_token()
        try:
            self.client.request(
                "/auth/logout", "POST", json=drop_none({"refresh_token": refresh_token})
            )
        finally:
            self.client.clear_tokens()

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self.client.request(
            "/auth/register",
            "POST",
            json={"name": name, "email": email, "password": password},
        )

    def register_client(self, user: Dict[str, Any], client: Dict[str, Any]) -> Dict[str, Any]:
        """Create a business and its admin user in one backend call."""
        return self.client.request(
            "/auth/register-client",
            "POST",
            json={"user": drop_none(user), "client": drop_none(client)},
        )

    def get_profile(self) -> UserProfile:
        return UserProfile.from_dict(self.client.request("/auth/profile"))

    def upload_image(
        self,
        file: Union[bytes, BinaryIO],
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> Dict[str, Any]:
        """
        Upload an image as multipart form data.

        Returns:
            Dict with url, filename and size
        """
        return self.client.request(
            "/auth/upload", "POST", files={"file": (filename, file, content_type)}
        )

    # ------------------------------------------------------------------ #
    # Users
    # ------------------------------------------------------------------ #

    def list_users(self) -> List[UserProfile]:
        return [UserProfile.from_dict(item) for item in self.client.request("/users") or []]

    def get_user(self, user_id: str) -> UserProfile:
        return UserProfile.from_dict(self.client.request(f"/users/{user_id}"))

    def update_user_modules(self, user_id: str, modules: Optional[Iterable[str]]) -> UserProfile:
        """Set a user's explicit module list; None restores role-based visibility."""
        payload = {"modules": list(modules) if modules is not None else None}
        return UserProfile.from_dict(
            self.client.request(f"/users/{user_id}/modules", "PATCH", json=payload)
        )

    # ------------------------------------------------------------------ #
    # Bookings
    # ------------------------------------------------------------------ #

    def list_bookings(self) -> List[Booking]:
        return [Booking.from_dict(item) for item in self.client.request("/bookings") or []]

    def create_booking(self, payload: Dict[str, Any]) -> Booking:
        return Booking.from_dict(self.client.request("/bookings", "POST", json=drop_none(payload)))

    # ------------------------------------------------------------------ #
    # Locations and venues
    # ------------------------------------------------------------------ #

    def list_locations(self, client_id: Optional[str] = None) -> List[Location]:
        data = self.client.request("/locations", params=_query(clientId=client_id))
        return [Location.from_dict(item) for item in data or []]

    def create_location(self, payload: Dict[str, Any]) -> Location:
        data = self.client.request("/locations", "POST", json=drop_none(payload))
        return Location.from_dict(_created_record(data, "location"))

    def list_gaming_centers(self, client_id: Optional[str] = None) -> List[GamingCenter]:
        data = self.client.request("/gaming", params=_query(clientId=client_id))
        return [GamingCenter.from_dict(item) for item in data or []]

    # ------------------------------------------------------------------ #
    # Facilities
    # ------------------------------------------------------------------ #

    def list_facilities(
        self,
        search: Optional[str] = None,
        type: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> List[Facility]:
        data = self.client.request(
            "/facilities",
            params=_query(search=search, type=type, location_id=location_id),
        )
        return [Facility.from_dict(item) for item in data or []]

    def create_facility(self, payload: Dict[str, Any]) -> Facility:
        data = self.client.request("/facilities", "POST", json=drop_none(payload))
        return Facility.from_dict(_created_record(data, "facility"))

    # ------------------------------------------------------------------ #
    # Clients
    # ------------------------------------------------------------------ #

    def get_client_statistics(self) -> ClientStatistics:
        return ClientStatistics.from_dict(self.client.request("/clients/statistics") or {})

    def list_clients(self, status: Optional[Union[ClientStatus, str]] = None) -> List[ClientProfile]:
        status_value = enum_value(status) if status else None
        data = self.client.request("/clients", params=_query(status=status_value))
        return [ClientProfile.from_dict(item) for item in data or []]

    def get_client(self, client_id: str) -> ClientProfile:
        return ClientProfile.from_dict(self.client.request(f"/clients/{client_id}"))

    def update_client(self, client_id: str, payload: Dict[str, Any]) -> Optional[ClientProfile]:
        """
        PATCH a client; explicit None values are sent to clear fields.

        Returns None when the backend answers without a body (204).
        """
        data = self.client.request(f"/clients/{client_id}", "PATCH", json=payload)
        if not data:
            return None
        data.setdefault("id", client_id)
        return ClientProfile.from_dict(data)

    def approve_client(self, client_id: str) -> ClientProfile:
        return self._client_action(client_id, "approve")

    def activate_client(self, client_id: str) -> ClientProfile:
        return self._client_action(client_id, "activate")

    def reject_client(self, client_id: str, reason: str) -> ClientProfile:
        return self._client_action(client_id, "reject", reason)

    def suspend_client(self, client_id: str, reason: str) -> ClientProfile:
        return self._client_action(client_id, "suspend", reason)

    def _client_action(
        self, client_id: str, action: str, reason: Optional[str] = None
    ) -> ClientProfile:
        body = {"reason": reason} if reason is not None else None
        data = self.client.request(f"/clients/{client_id}/{action}", "POST", json=body)
        logger.info(
            f"Client {action} submitted",
            operation="client_action",
            context={"client_id": client_id, "action": action},
        )
        return ClientProfile.from_dict(data or {"id": client_id})
