"""
Form state for the onboarding wizard.

Forms hold exactly what the user typed (text fields are strings, the
business coordinates included); conversion to API payloads happens in the
``to_*_payload`` methods.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from ..domain import ClientProfile, FacilityStatus, FacilityType, Location


@dataclass
class StepErrors:
    """
    Validation and submission errors for one wizard step.

    Attributes:
        global_error: Step-wide summary or server message
        fields: Field-scoped messages keyed by field name, or
            ``"<index>.<field>"`` for repeated rows
    """

    global_error: Optional[str] = None
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return bool(self.fields) or bool(self.global_error)

    def clear_field(self, key: str) -> None:
        self.fields.pop(key, None)


def _text(value: Optional[str]) -> Optional[str]:
    """Empty strings become None for optional payload fields."""
    return value if value else None


def _coordinate(value: str) -> Optional[float]:
    return float(value) if value and value.strip() else None


@dataclass
class BusinessForm:
    company_name: str = ""
    legal_name: str = ""
    contact_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    postal_code: str = ""
    tax_id: str = ""
    registration_number: str = ""
    description: str = ""
    logo_url: str = ""
    cover_image_url: str = ""
    latitude: str = ""
    longitude: str = ""
    admin_password: str = ""

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_client(cls, client: ClientProfile) -> "BusinessForm":
        """Prefill from an existing client (edit mode); the password stays empty."""
        return cls(
            company_name=client.company_name or "",
            legal_name=client.legal_name or "",
            contact_name=client.contact_name or client.user_name or "",
            email=client.email or client.user_email or "",
            phone=client.phone or "",
            address=client.address or "",
            city=client.city or "",
            state=client.state or "",
            country=client.country or "",
            postal_code=client.postal_code or "",
            tax_id=client.tax_id or "",
            registration_number=client.company_registration_number or "",
            description=client.description or "",
            logo_url=client.logo_url or "",
            cover_image_url=client.cover_image_url or "",
            latitude=str(client.latitude) if client.latitude is not None else "",
            longitude=str(client.longitude) if client.longitude is not None else "",
        )

    def _client_fields(self) -> Dict[str, Any]:
        return {
            "company_name": self.company_name,
            "legal_name": _text(self.legal_name),
            "contact_name": _text(self.contact_name),
            "email": _text(self.email),
            "phone": _text(self.phone),
            "address": _text(self.address),
            "city": _text(self.city),
            "state": _text(self.state),
            "country": _text(self.country),
            "postal_code": _text(self.postal_code),
            "tax_id": _text(self.tax_id),
            "company_registration_number": _text(self.registration_number),
            "description": _text(self.description),
            "logo_url": _text(self.logo_url),
            "cover_image_url": _text(self.cover_image_url),
            "latitude": _coordinate(self.latitude),
            "longitude": _coordinate(self.longitude),
        }

    def to_register_payload(self) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """
        Build the (user, client) bodies for /auth/register-client.

        The admin user's name falls back from contact name to company name
        to email.
        """
        user = {
            "name": self.contact_name.strip() or self.company_name.strip() or self.email,
            "email": self.email,
            "password": self.admin_password,
        }
        return user, self._client_fields()

    def to_update_payload(self) -> Dict[str, Any]:
        """Body for PATCH /clients/:id; blank optional fields are sent as null."""
        return self._client_fields()


@dataclass
class LocationForm:
    """One location row. Rows with an ``id`` already exist server-side."""

    id: Optional[str] = None
    client_id: Optional[str] = None
    name: str = ""
    description: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    postal_code: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    COORDINATE_FIELDS = ("latitude", "longitude")

    @classmethod
    def from_location(cls, location: Location) -> "LocationForm":
        return cls(
            id=location.id,
            client_id=location.client_id,
            name=location.name or "",
            description=location.description or "",
            phone=location.phone or "",
            address=location.address or "",
            city=location.city or "",
            state=location.state or "",
            country=location.country or "",
            postal_code=location.postal_code or "",
            latitude=location.latitude,
            longitude=location.longitude,
        )

    def to_payload(self, client_id: str) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("id")
        payload["client_id"] = client_id
        for key in ("description", "phone", "address", "state", "postal_code"):
            payload[key] = _text(payload[key])
        return payload


@dataclass
class FacilityForm:
    id: Optional[str] = None
    name: str = ""
    type: str = FacilityType.OTHER.value
    status: str = FacilityStatus.ACTIVE.value
    location_id: str = ""
    capacity: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload.pop("id")
        return payload
