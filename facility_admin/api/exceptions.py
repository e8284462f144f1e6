"""
Exception hierarchy for backend API calls.

Callers catch ApiError at the view boundary and render ``str(error)``.
Authentication recovery (refresh-and-retry) happens inside the client, so
an ApiAuthenticationError means recovery was impossible or failed.
"""

from typing import Any, Optional

DEFAULT_ERROR_MESSAGE = "Request failed"


class ApiError(Exception):
    """Base exception for all API client failures."""


class ApiConnectionError(ApiError):
    """
    Raised when the request never produced an HTTP response
    (DNS failure, refused connection, transport timeout).
    """


class ApiRequestError(ApiError):
    """
    Raised for any non-2xx response.

    Attributes:
        message: Human-readable message taken from the response body when available
        status_code: HTTP status of the final response
        payload: Parsed JSON error body, if any
    """

    def __init__(
        self,
        message: str = DEFAULT_ERROR_MESSAGE,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ApiAuthenticationError(ApiRequestError):
    """Raised when the final response is 401 Unauthorized."""
