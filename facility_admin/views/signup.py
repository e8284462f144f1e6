"""
Self-service signup form checks and error wording.
"""

from dataclasses import dataclass
from typing import Optional

from ..onboarding.validation import MIN_PASSWORD_LENGTH

DUPLICATE_EMAIL_MARKER = "user with this email already exists"


@dataclass(frozen=True)
class SignupFeedback:
    error: str
    hint: Optional[str] = None


def validate_signup(password: str, confirm_password: str) -> Optional[str]:
    """Return an error message, or None when the passwords are acceptable."""
    if password != confirm_password:
        return "Passwords do not match"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def friendly_registration_error(message: Optional[str]) -> SignupFeedback:
    """Map common backend failures to user-facing wording."""
    lowered = (message or "").lower()
    if DUPLICATE_EMAIL_MARKER in lowered:
        return SignupFeedback("An account with this email already exists.")
    if "gateway timeout" in lowered or "bad gateway" in lowered:
        return SignupFeedback(
            "The server is taking too long to respond.",
            hint=(
                "Please try again in a few seconds. If this keeps happening, "
                "the backend may still be deploying."
            ),
        )
    return SignupFeedback(message or "Registration failed")
