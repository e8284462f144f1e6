"""
Facility and gaming center domain models.

Facilities are bookable units (tables, courts, consoles) inside a location.
Gaming centers are the client-owned venues served by /gaming.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .base import coerce_enum, split_known_fields


class FacilityStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class FacilityType(str, Enum):
    """Kinds of bookable facility."""

    GAMING_PC = "gaming-pc"
    VR = "vr"
    PS4 = "ps4"
    PS5 = "ps5"
    XBOX = "xbox"
    SNOOKER_TABLE = "snooker-table"
    TABLE_TENNIS_TABLE = "table-tennis-table"
    FUTSAL_FIELD = "futsal-field"
    CRICKET_PITCH = "cricket-pitch"
    PADEL_COURT = "padel-court"
    OTHER = "other"


@dataclass
class Facility:
    """Facility record as returned by /facilities."""

    id: str
    location_id: str
    name: str
    type: str
    status: Union[FacilityStatus, str] = FacilityStatus.ACTIVE
    capacity: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Facility":
        core, extra = split_known_fields(cls, data)
        core["status"] = coerce_enum(FacilityStatus, core.get("status"), FacilityStatus.ACTIVE)
        core.setdefault("location_id", "")
        core.setdefault("name", "")
        core.setdefault("type", FacilityType.OTHER.value)
        return cls(**core, extra_fields=extra)


@dataclass
class GamingCenter:
    """Gaming venue record as returned by /gaming."""

    id: str
    client_id: str
    name: str
    status: Union[FacilityStatus, str] = FacilityStatus.ACTIVE
    admin_id: Optional[str] = None
    description: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    amenities: Optional[List[str]] = None
    hourly_rate: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GamingCenter":
        core, extra = split_known_fields(cls, data)
        core["status"] = coerce_enum(FacilityStatus, core.get("status"), FacilityStatus.ACTIVE)
        core.setdefault("client_id", "")
        core.setdefault("name", "")
        return cls(**core, extra_fields=extra)
