"""
Location domain model.

A location is a branch belonging to exactly one client.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .base import split_known_fields

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


def latitude_in_range(value: Optional[float]) -> bool:
    """Return True when latitude is unset or within [-90, 90]."""
    return value is None or LATITUDE_RANGE[0] <= value <= LATITUDE_RANGE[1]


def longitude_in_range(value: Optional[float]) -> bool:
    """Return True when longitude is unset or within [-180, 180]."""
    return value is None or LONGITUDE_RANGE[0] <= value <= LONGITUDE_RANGE[1]


@dataclass
class Location:
    """Location record as returned by /locations."""

    id: str
    client_id: str
    name: str
    description: Optional[str] = None
    phone: Optional[str] = None
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
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        core, extra = split_known_fields(cls, data)
        core.setdefault("client_id", "")
        core.setdefault("name", "")
        return cls(**core, extra_fields=extra)
