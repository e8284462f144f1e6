"""
Structured logging for the dashboard client.

Each record is one JSON object (timestamp, level, message and optional
operation, context, duration_ms, error). Credentials are masked before
they reach a log line.
"""

import json
import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, Optional


def mask_email(email: Optional[str]) -> str:
    """
    Mask an email address, keeping the first character and the domain.

    Example:
        >>> mask_email("jo@acme.com")
        "j***@acme.com"
    """
    if not email:
        return "unknown"
    local, sep, domain = email.partition("@")
    if not sep:
        return "invalid"
    return f"{local[:1]}***@{domain}"


def mask_token(token: Optional[str]) -> str:
    """
    Mask a bearer or refresh token down to its last 4 characters.

    Example:
        >>> mask_token("eyJhbGciOiJIUzI1NiJ9.abcd")
        "****abcd"
    """
    if not token:
        return "none"
    return "****" if len(token) <= 8 else f"****{token[-4:]}"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger that emits JSON lines.

    Args:
        name: Logger name, usually the calling module's ``__name__``
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        # One stream handler per named logger, even when constructed repeatedly
        if not self.logger.handlers:
            stream = logging.StreamHandler()
            stream.setLevel(logging.DEBUG)
            stream.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(stream)

    @staticmethod
    def build_entry(
        level: str,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None,
    ) -> str:
        """Serialize one record; empty optional fields are left out."""
        entry: Dict[str, Any] = {"timestamp": _utc_timestamp(), "level": level, "message": message}
        optional = {
            "operation": operation,
            "context": context or None,
            "duration_ms": round(duration_ms, 2) if duration_ms is not None else None,
            "error": error or None,
        }
        entry.update({key: value for key, value in optional.items() if value is not None})
        return json.dumps(entry, ensure_ascii=False, default=str)

    def _log(self, level: int, message: str, **fields: Any) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self.build_entry(logging.getLevelName(level), message, **fields))

    def debug(self, message: str, operation: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, message, operation=operation, context=context)

    def info(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ):
        self._log(logging.INFO, message, operation=operation, context=context, duration_ms=duration_ms)

    def warning(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        self._log(logging.WARNING, message, operation=operation, context=context, error=error)

    def error(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ):
        self._log(
            logging.ERROR,
            message,
            operation=operation,
            context=context,
            duration_ms=duration_ms,
            error=error,
        )


def log_operation(operation_name: str):
    """
    Log start, completion (with duration) and failure of the wrapped call.

    An ``email`` keyword argument is logged masked; ``password`` never is.

    Usage:
        @log_operation("login")
        def login(self, email, password):
            ...
    """

    def decorator(func):
        log = StructuredLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            context: Dict[str, Any] = {"function": func.__name__}
            if "email" in kwargs:
                context["email_masked"] = mask_email(kwargs["email"])

            log.debug(f"Starting {operation_name}", operation=operation_name, context=context)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(
                    f"Failed {operation_name}",
                    operation=operation_name,
                    context=context,
                    error=str(e),
                    duration_ms=(time.perf_counter() - started) * 1000,
                )
                raise

            log.info(
                f"Completed {operation_name}",
                operation=operation_name,
                context=context,
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            return result

        return wrapper

    return decorator


def get_logger(name: str) -> StructuredLogger:
    """Return a StructuredLogger for ``name``."""
    return StructuredLogger(name)
