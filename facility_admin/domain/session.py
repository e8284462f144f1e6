"""
Session credentials domain model.

Holds the access/refresh token pair issued by the backend. The pair is
persisted by a token store between client invocations.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

ACCESS_TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refresh_token"


@dataclass
class TokenPair:
    """
    Access token plus optional refresh token.

    Attributes:
        access_token: Short-lived bearer credential
        refresh_token: Longer-lived credential exchanged at /auth/refresh
    """

    access_token: str
    refresh_token: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "TokenPair":
        """
        Build a TokenPair from a login or refresh response body.

        Raises:
            ValueError: If the response carries no access token
        """
        if not isinstance(data, dict) or not data.get("access_token"):
            raise ValueError("Response did not include an access token")
        return cls(access_token=data["access_token"], refresh_token=data.get("refresh_token"))

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Serialize under the fixed storage keys."""
        return {ACCESS_TOKEN_KEY: self.access_token, REFRESH_TOKEN_KEY: self.refresh_token}
