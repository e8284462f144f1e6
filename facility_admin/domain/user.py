"""
User profile domain model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .base import coerce_enum, enum_value, split_known_fields


class Role(str, Enum):
    """Fixed role enumeration used by the backend."""

    ADMIN = "admin"
    CLIENT = "client"
    USER = "user"


@dataclass
class UserProfile:
    """
    Authenticated user (from /auth/profile) or admin user summary (from /users).

    Attributes:
        id: Backend user identifier
        email: Login email
        name: Display name
        role: One of Role (raw string for roles the client does not know)
        modules: Optional explicit list of visible dashboard module ids.
            When None or empty, visibility falls back to the role table.
    """

    id: str
    email: str
    name: str
    role: Union[Role, str]
    modules: Optional[List[str]] = None
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        core, extra = split_known_fields(cls, data)
        core["role"] = coerce_enum(Role, core.get("role"), Role.USER)
        core.setdefault("name", "")
        core.setdefault("email", "")
        return cls(**core, extra_fields=extra)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": enum_value(self.role),
            "modules": self.modules,
        }
        data.update(self.extra_fields)
        return data

    def has_role(self, allowed_roles) -> bool:
        """Return True when the user's role is one of ``allowed_roles``."""
        return enum_value(self.role) in {enum_value(r) for r in allowed_roles}
