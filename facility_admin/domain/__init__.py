"""Domain models - platform entities held transiently by the client"""

from .booking import Booking, BookingStatus
from .client import ClientProfile, ClientStatistics, ClientStatus
from .facility import Facility, FacilityStatus, FacilityType, GamingCenter
from .location import Location, latitude_in_range, longitude_in_range
from .session import TokenPair
from .user import Role, UserProfile

__all__ = [
    "Booking",
    "BookingStatus",
    "ClientProfile",
    "ClientStatistics",
    "ClientStatus",
    "Facility",
    "FacilityStatus",
    "FacilityType",
    "GamingCenter",
    "Location",
    "latitude_in_range",
    "longitude_in_range",
    "TokenPair",
    "Role",
    "UserProfile",
]
