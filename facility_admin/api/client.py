"""
Authenticated API client for the facility-booking backend.

Wraps a requests.Session with bearer-token attachment and a single
refresh-then-retry on 401. One HTTP exchange is performed by ``send()``,
which classifies the response instead of raising; ``request()`` is the
orchestration loop and is the only place a refresh can happen, so a call
is retried at most once.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import requests

from ..auth.token_store import InMemoryTokenStore, TokenStore
from ..domain.session import TokenPair
from ..utils.logger import get_logger, mask_token
from .exceptions import (
    DEFAULT_ERROR_MESSAGE,
    ApiAuthenticationError,
    ApiConnectionError,
    ApiRequestError,
)

logger = get_logger(__name__)


class SendOutcome(str, Enum):
    OK = "ok"
    NEEDS_REFRESH = "needs_refresh"
    FAILED = "failed"


@dataclass
class SendResult:
    """Classified result of a single HTTP exchange."""

    outcome: SendOutcome
    response: requests.Response


class ApiClient:
    """
    Low-level client: one logical operation per ``request()`` call.

    Attributes:
        base_url: Backend root, e.g. "http://localhost:3001"
        token_store: Where the access/refresh pair lives
        session: requests.Session (keeps cookies between calls)
        timeout: Optional per-request timeout in seconds (None = transport default)
    """

    LOGIN_PATH = "/auth/login"
    REFRESH_PATH = "/auth/refresh"
    NO_CONTENT = 204
    UNAUTHORIZED = 401

    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store or InMemoryTokenStore()
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def request(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Perform one logical API operation.

        Returns:
            Parsed JSON body, or None for 204 / empty responses

        Raises:
            ApiConnectionError: Transport failure
            ApiAuthenticationError: Final response was 401
            ApiRequestError: Any other non-2xx response
        """
        kwargs = dict(json=json, files=files, data=data, params=params, headers=headers)

        result = self.send(path, method, **kwargs)

        if result.outcome is SendOutcome.NEEDS_REFRESH:
            if not self._refresh_tokens():
                raise self._error_from_response(result.response)
            result = self.send(path, method, allow_refresh=False, **kwargs)

        if result.outcome is not SendOutcome.OK:
            raise self._error_from_response(result.response)

        return self._parse_body(result.response)

    def send(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        allow_refresh: bool = True,
    ) -> SendResult:
        """
        Issue a single HTTP exchange and classify the response.

        NEEDS_REFRESH is only returned for a 401 on a non-auth path while a
        refresh token is stored and ``allow_refresh`` is set.
        """
        response = self._issue(
            path,
            method,
            json=json,
            files=files,
            data=data,
            params=params,
            headers=headers,
            attach_auth=True,
        )

        if response.ok:
            return SendResult(SendOutcome.OK, response)

        if (
            response.status_code == self.UNAUTHORIZED
            and allow_refresh
            and not self._is_auth_exempt(path)
            and self.token_store.get_refresh_token()
        ):
            return SendResult(SendOutcome.NEEDS_REFRESH, response)

        return SendResult(SendOutcome.FAILED, response)

    def store_tokens(self, tokens: TokenPair) -> None:
        self.token_store.set(tokens)

    def clear_tokens(self) -> None:
        self.token_store.clear()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _issue(
        self,
        path: str,
        method: str,
        json: Any = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        attach_auth: bool = True,
    ) -> requests.Response:
        request_headers = self._build_headers(headers, multipart=files is not None, attach_auth=attach_auth)
        url = f"{self.base_url}{path}"
        context = {"method": method, "path": path}

        start_time = time.time()
        try:
            response = self.session.request(
                method,
                url,
                headers=request_headers,
                json=json,
                files=files,
                data=data,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Transport failure", operation="api_request", context=context, error=str(e))
            raise ApiConnectionError(f"Could not reach {url}: {e}") from e

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"{method} {path} -> {response.status_code}",
            operation="api_request",
            context={**context, "status": response.status_code, "duration_ms": round(duration_ms, 2)},
        )
        return response

    def _build_headers(
        self,
        headers: Optional[Dict[str, str]],
        multipart: bool,
        attach_auth: bool,
    ) -> Dict[str, str]:
        request_headers = dict(headers or {})

        if multipart:
            # requests generates the boundary-bearing multipart header itself
            for key in [k for k in request_headers if k.lower() == "content-type"]:
                del request_headers[key]
        elif not any(k.lower() == "content-type" for k in request_headers):
            request_headers["Content-Type"] = "application/json"

        if attach_auth:
            token = self.token_store.get_access_token()
            if token:
                request_headers["Authorization"] = f"Bearer {token}"

        return request_headers

    def _is_auth_exempt(self, path: str) -> bool:
        route = path.split("?", 1)[0]
        return route in (self.LOGIN_PATH, self.REFRESH_PATH)

    def _refresh_tokens(self) -> bool:
        """
        Exchange the stored refresh token for a new pair.

        On any failure both tokens are cleared and False is returned.
        """
        refresh_token = self.token_store.get_refresh_token()
        context = {"refresh_token": mask_token(refresh_token)}

        if not refresh_token:
            return False

        try:
            response = self._issue(
                self.REFRESH_PATH,
                "POST",
                json={"refresh_token": refresh_token},
                attach_auth=False,
            )
            if not response.ok:
                raise ApiRequestError(self._extract_message(response), response.status_code)
            tokens = TokenPair.from_response(response.json())
        except (ApiConnectionError, ApiRequestError, ValueError) as e:
            logger.warning(
                "Token refresh failed; clearing stored credentials",
                operation="refresh_tokens",
                context=context,
                error=str(e),
            )
            self.token_store.clear()
            return False

        if not tokens.refresh_token:
            tokens.refresh_token = refresh_token
        self.token_store.set(tokens)
        logger.info(
            "Access token refreshed",
            operation="refresh_tokens",
            context={"access_token": mask_token(tokens.access_token)},
        )
        return True

    @staticmethod
    def _extract_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return DEFAULT_ERROR_MESSAGE

        if not isinstance(payload, dict):
            return DEFAULT_ERROR_MESSAGE

        message = payload.get("message")
        if isinstance(message, list):
            message = ", ".join(str(m) for m in message if m)
        return message or DEFAULT_ERROR_MESSAGE

    def _error_from_response(self, response: requests.Response) -> ApiRequestError:
        message = self._extract_message(response)
        try:
            payload = response.json()
        except ValueError:
            payload = None

        error_cls = (
            ApiAuthenticationError
            if response.status_code == self.UNAUTHORIZED
            else ApiRequestError
        )
        logger.warning(
            "Request failed",
            operation="api_request",
            context={"status": response.status_code, "url": response.url},
            error=message,
        )
        return error_cls(message, status_code=response.status_code, payload=payload)

    def _parse_body(self, response: requests.Response) -> Any:
        if response.status_code == self.NO_CONTENT or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ApiRequestError(
                f"Invalid JSON in response: {e}", status_code=response.status_code
            ) from e
