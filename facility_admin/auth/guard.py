"""
Route protection for dashboard pages.

Decides, from the loaded profile, whether a page can be shown or where the
user must be redirected.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import quote

from ..domain.user import UserProfile

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"


class AccessOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT_LOGIN = "redirect_login"
    FORBIDDEN = "forbidden"
    ALLOW = "allow"


@dataclass(frozen=True)
class AccessDecision:
    outcome: AccessOutcome
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is AccessOutcome.ALLOW


def check_access(
    profile: Optional[UserProfile],
    path: str,
    allowed_roles: Optional[Iterable[str]] = None,
    loading: bool = False,
) -> AccessDecision:
    """
    Decide whether ``profile`` may view ``path``.

    Unauthenticated users are sent to the login page with the current path
    as ``next``; signed-in users whose role is not allowed are sent back to
    the dashboard home.
    """
    if loading:
        return AccessDecision(AccessOutcome.LOADING)

    if profile is None:
        return AccessDecision(
            AccessOutcome.REDIRECT_LOGIN,
            redirect_to=f"{LOGIN_PATH}?next={quote(path, safe='')}",
        )

    if allowed_roles is not None and not profile.has_role(allowed_roles):
        return AccessDecision(AccessOutcome.FORBIDDEN, redirect_to=DASHBOARD_PATH)

    return AccessDecision(AccessOutcome.ALLOW)
