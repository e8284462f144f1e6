"""
Dashboard overview model.

Bookings, gaming centers and (for admins) client statistics are fetched
independently: one failing call does not hide the others.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, TypeVar

from ..api.dashboard import DashboardAPI
from ..api.exceptions import ApiError
from ..auth.modules import DashboardModule, resolve_visible_modules
from ..domain import Booking, BookingStatus, ClientStatistics, GamingCenter, Role, UserProfile
from ..domain.base import enum_value
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class DashboardOverview:
    bookings: List[Booking] = field(default_factory=list)
    gaming_centers: List[GamingCenter] = field(default_factory=list)
    client_stats: Optional[ClientStatistics] = None
    modules: FrozenSet[DashboardModule] = frozenset()
    errors: Dict[str, str] = field(default_factory=dict)

    def shows(self, module: DashboardModule) -> bool:
        return module in self.modules

    def bookings_by_status(self) -> Dict[str, int]:
        """Counts per status value; statuses unknown to the client get their own key."""
        counts = {status.value: 0 for status in BookingStatus}
        for booking in self.bookings:
            key = enum_value(booking.status)
            counts[key] = counts.get(key, 0) + 1
        return counts


def _settle(name: str, call: Callable[[], T], errors: Dict[str, str]) -> Optional[T]:
    try:
        return call()
    except ApiError as e:
        errors[name] = str(e)
        logger.warning(f"Overview section {name} failed", operation="load_overview", error=str(e))
        return None


def load_overview(api: DashboardAPI, profile: Optional[UserProfile]) -> DashboardOverview:
    """
    Load the overview for ``profile``.

    Gaming centers are scoped to the user's own id for client accounts;
    client statistics are only requested for admins.
    """
    overview = DashboardOverview()
    if profile is None:
        return overview

    overview.modules = resolve_visible_modules(profile.role, profile.modules)

    overview.bookings = _settle("bookings", api.list_bookings, overview.errors) or []

    scope = profile.id if profile.role is Role.CLIENT else None
    overview.gaming_centers = (
        _settle("gaming", lambda: api.list_gaming_centers(scope), overview.errors) or []
    )

    if profile.role is Role.ADMIN:
        overview.client_stats = _settle(
            "client_stats", api.get_client_statistics, overview.errors
        )

    return overview
