"""
Booking domain model.

Represents a reservation of a location (and optionally one facility in it)
for a time interval. Supports dynamic fields returned by the backend.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from .base import coerce_enum, enum_value, split_known_fields


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass
class Booking:
    """
    Booking domain model.

    Attributes:
        id: Backend booking identifier
        user_id: Booking owner
        location_id: Booked location
        status: One of BookingStatus (raw string for values added server-side)
        start_time: ISO 8601 start of the interval
        end_time: ISO 8601 end of the interval
        facility_id: Optional booked facility inside the location

    Design Note:
        Fields not modelled here are kept in ``extra_fields`` so that
        backend additions survive a from_dict/to_dict pass unchanged.
    """

    id: str
    user_id: str
    location_id: str
    status: Union[BookingStatus, str]
    start_time: str
    end_time: str
    facility_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        """
        Create Booking from an API response dictionary.

        Args:
            data: Dictionary with booking data

        Returns:
            Booking instance
        """
        core, extra = split_known_fields(cls, data)
        core["status"] = coerce_enum(BookingStatus, core.get("status"), BookingStatus.PENDING)
        for key in ("user_id", "location_id", "start_time", "end_time"):
            core.setdefault(key, "")
        return cls(**core, extra_fields=extra)

    def to_dict(self, include_extra: bool = True) -> Dict[str, Any]:
        """
        Convert Booking to a dictionary.

        Args:
            include_extra: If True, flatten extra_fields into the output
        """
        data = asdict(self)
        data["status"] = enum_value(self.status)
        extra = data.pop("extra_fields", {})
        if include_extra:
            data.update(extra)
        return data

    def duration_minutes(self) -> Optional[int]:
        """Return the interval length in minutes, or None if times are unparseable."""
        try:
            start = datetime.fromisoformat(self.start_time.replace("Z", "+00:00"))
            end = datetime.fromisoformat(self.end_time.replace("Z", "+00:00"))
        except (AttributeError, ValueError):
            return None
        return int((end - start).total_seconds() // 60)

    def get_field(self, field_name: str, default: Any = None) -> Any:
        """Get a core or dynamically-added field."""
        if hasattr(self, field_name):
            return getattr(self, field_name)
        return self.extra_fields.get(field_name, default)
