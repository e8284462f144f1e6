"""
Dashboard module visibility.

A user sees the modules explicitly assigned to them; when no explicit list
is set (None or empty), the fixed per-role table applies.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Union

from ..domain.user import Role


class DashboardModule(str, Enum):
    OVERVIEW = "dashboard-overview"
    GAMING = "gaming"
    SNOOKER = "snooker"
    TABLE_TENNIS = "table-tennis"
    CRICKET = "cricket"
    FUTSAL_TURF = "futsal-turf"
    PADEL = "padel"
    LOCATIONS = "locations"
    USERS = "users"
    BOOKINGS = "bookings"
    ANALYTICS = "analytics"
    SETTINGS = "settings"


ROLE_DEFAULT_MODULES: Dict[Role, FrozenSet[DashboardModule]] = {
    Role.ADMIN: frozenset(
        {
            DashboardModule.OVERVIEW,
            DashboardModule.ANALYTICS,
            DashboardModule.BOOKINGS,
            DashboardModule.GAMING,
        }
    ),
    Role.CLIENT: frozenset(
        {
            DashboardModule.OVERVIEW,
            DashboardModule.BOOKINGS,
            DashboardModule.GAMING,
        }
    ),
    Role.USER: frozenset({DashboardModule.OVERVIEW}),
}


def _known_modules(explicit_modules: Iterable[Optional[str]]) -> FrozenSet[DashboardModule]:
    known = {m.value: m for m in DashboardModule}
    return frozenset(known[m] for m in explicit_modules if m and m in known)


def resolve_visible_modules(
    role: Union[Role, str],
    explicit_modules: Optional[Iterable[Optional[str]]] = None,
) -> FrozenSet[DashboardModule]:
    """
    Resolve the set of dashboard modules a user can see.

    Args:
        role: User role; roles the client does not know get the user defaults
        explicit_modules: Optional explicit module ids from the user profile

    Returns:
        Frozen set of DashboardModule

    Example:
        >>> resolve_visible_modules("user")
        frozenset({<DashboardModule.OVERVIEW: 'dashboard-overview'>})
    """
    explicit = list(explicit_modules or [])
    if explicit:
        return _known_modules(explicit)

    try:
        return ROLE_DEFAULT_MODULES[Role(role)]
    except ValueError:
        return ROLE_DEFAULT_MODULES[Role.USER]
