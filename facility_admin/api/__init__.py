"""API module - authenticated backend client and typed resource operations"""

from .client import ApiClient, SendOutcome, SendResult
from .dashboard import DashboardAPI
from .exceptions import (
    ApiAuthenticationError,
    ApiConnectionError,
    ApiError,
    ApiRequestError,
)

__all__ = [
    "ApiClient",
    "SendOutcome",
    "SendResult",
    "DashboardAPI",
    "ApiAuthenticationError",
    "ApiConnectionError",
    "ApiError",
    "ApiRequestError",
]
