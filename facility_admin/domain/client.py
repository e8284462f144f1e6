"""
Client (business) domain model.

A client is a business tenant on the platform. It owns one or more
locations and moves through an approval lifecycle managed by admins.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from .base import coerce_enum, split_known_fields


class ClientStatus(str, Enum):
    """Client lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


@dataclass
class ClientProfile:
    """
    Business profile as returned by /clients and /clients/:id.

    Only ``id`` and ``company_name`` are guaranteed by the backend; every
    other field is optional.
    """

    id: str
    company_name: str
    legal_name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    tax_id: Optional[str] = None
    company_registration_number: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Optional[Union[ClientStatus, str]] = None
    user: Optional[Dict[str, Any]] = None
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientProfile":
        core, extra = split_known_fields(cls, data)
        core["status"] = coerce_enum(ClientStatus, core.get("status"))
        core.setdefault("id", "")
        core.setdefault("company_name", "")
        return cls(**core, extra_fields=extra)

    @property
    def user_name(self) -> Optional[str]:
        return (self.user or {}).get("name")

    @property
    def user_email(self) -> Optional[str]:
        return (self.user or {}).get("email")


@dataclass
class ClientStatistics:
    """Client counts per lifecycle status (admin overview)."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    active: int = 0
    rejected: int = 0
    suspended: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientStatistics":
        return cls(**{k: int(data.get(k) or 0) for k in cls.__dataclass_fields__})
