"""Auth module - token persistence, route protection and module visibility"""

from .guard import AccessDecision, AccessOutcome, check_access
from .modules import DashboardModule, ROLE_DEFAULT_MODULES, resolve_visible_modules
from .token_store import (
    DynamoDBTokenStore,
    FileTokenStore,
    InMemoryTokenStore,
    TokenStore,
    TokenStoreError,
    TokenStoreNetworkError,
    TokenStorePermissionError,
)

__all__ = [
    "AccessDecision",
    "AccessOutcome",
    "check_access",
    "DashboardModule",
    "ROLE_DEFAULT_MODULES",
    "resolve_visible_modules",
    "DynamoDBTokenStore",
    "FileTokenStore",
    "InMemoryTokenStore",
    "TokenStore",
    "TokenStoreError",
    "TokenStoreNetworkError",
    "TokenStorePermissionError",
]
