"""
Token stores - persistence for the access/refresh token pair.

The API client never reads tokens from module-level state; it is handed a
store that implements get/set/clear. Three backends are provided:

- InMemoryTokenStore: process lifetime only (tests, embedded use)
- FileTokenStore: JSON file on disk (CLI sessions)
- DynamoDBTokenStore: single-record DynamoDB table shared across hosts
"""

import json
import os
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.session import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, TokenPair
from ..utils.logger import get_logger, mask_token

logger = get_logger(__name__)


class TokenStoreError(Exception):
    """Base exception for token persistence failures."""


class TokenStoreNetworkError(TokenStoreError):
    """Raised when the storage backend cannot be reached."""


class TokenStorePermissionError(TokenStoreError):
    """Raised when the caller lacks permission on the storage backend."""


class TokenStore(ABC):
    """Session-scoped storage for the token pair."""

    @abstractmethod
    def get(self) -> Optional[TokenPair]:
        """Return the stored pair, or None when no access token is stored."""

    @abstractmethod
    def set(self, tokens: TokenPair) -> None:
        """Persist both keys of the pair (a missing refresh token removes the old one)."""

    @abstractmethod
    def clear(self) -> None:
        """Remove both stored tokens."""

    def get_access_token(self) -> Optional[str]:
        tokens = self.get()
        return tokens.access_token if tokens else None

    def get_refresh_token(self) -> Optional[str]:
        tokens = self.get()
        return tokens.refresh_token if tokens else None


class InMemoryTokenStore(TokenStore):
    def __init__(self, tokens: Optional[TokenPair] = None):
        self._tokens = tokens

    def get(self) -> Optional[TokenPair]:
        return self._tokens

    def set(self, tokens: TokenPair) -> None:
        self._tokens = TokenPair(tokens.access_token, tokens.refresh_token)

    def clear(self) -> None:
        self._tokens = None


class FileTokenStore(TokenStore):
    """
    Stores the token pair as a JSON document under the two fixed keys.

    The file is created with owner-only permissions.
    """

    DEFAULT_PATH = Path.home() / ".facility_admin" / "tokens.json"

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path).expanduser() if path else self.DEFAULT_PATH

    def get(self) -> Optional[TokenPair]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            logger.warning(
                "Token file is not valid JSON; ignoring stored session",
                operation="token_store_get",
                context={"path": str(self.path)},
                error=str(e),
            )
            return None

        access_token = data.get(ACCESS_TOKEN_KEY) if isinstance(data, dict) else None
        if not access_token:
            return None
        return TokenPair(access_token=access_token, refresh_token=data.get(REFRESH_TOKEN_KEY))

    def set(self, tokens: TokenPair) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        # Owner-only from the moment the file exists
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(tokens.to_dict(), f)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self.path)
        logger.debug(
            "Stored tokens",
            operation="token_store_set",
            context={"path": str(self.path), "access_token": mask_token(tokens.access_token)},
        )

    def clear(self) -> None:
        try:
            self.path.unlink()
            logger.debug("Cleared tokens", operation="token_store_clear", context={"path": str(self.path)})
        except FileNotFoundError:
            pass


class DynamoDBTokenStore(TokenStore):
    """
    Token pair persisted in DynamoDB.

    Table Schema:
        Partition Key: id (one record per dashboard session, default "dashboard")
        Attributes: token, refresh_token
    """

    def __init__(
        self,
        table_name: str = "session",
        dynamodb_resource: Optional[Any] = None,
        session_id: str = "dashboard",
        max_retries: int = 3,
        backoff_base: float = 0.5,
    ):
        """
        Initialize DynamoDBTokenStore.

        Args:
            table_name: DynamoDB table name (default: "session")
            dynamodb_resource: boto3 DynamoDB resource (default: creates new)
            session_id: Partition key of the token record
            max_retries: Number of attempts for throttled writes
            backoff_base: Base exponential backoff multiplier (seconds)
        """
        self.table_name = table_name
        self.dynamodb = dynamodb_resource or boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(table_name)
        self.session_id = session_id
        self.max_retries = max_retries
        self.backoff_base = backoff_base

    def get(self) -> Optional[TokenPair]:
        context = {"session_id": self.session_id}
        try:
            response = self.table.get_item(Key={"id": self.session_id})
        except ClientError as e:
            raise self._translate(e, "token_store_get", context) from e
        except (BotoCoreError, OSError) as e:
            logger.error("Network error", operation="token_store_get", context=context, error=str(e))
            raise TokenStoreNetworkError(f"Network error: {e}") from e

        item = response.get("Item")
        if not item or not item.get(ACCESS_TOKEN_KEY):
            logger.debug("No stored tokens", operation="token_store_get", context=context)
            return None

        return TokenPair(
            access_token=item[ACCESS_TOKEN_KEY],
            refresh_token=item.get(REFRESH_TOKEN_KEY),
        )

    def set(self, tokens: TokenPair) -> None:
        context = {"session_id": self.session_id, "access_token": mask_token(tokens.access_token)}
        item = {"id": self.session_id, ACCESS_TOKEN_KEY: tokens.access_token}
        if tokens.refresh_token:
            item[REFRESH_TOKEN_KEY] = tokens.refresh_token

        for attempt in range(self.max_retries):
            try:
                self.table.put_item(Item=item)
                logger.info("Tokens saved", operation="token_store_set", context=context)
                return
            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "Unknown")
                if (
                    error_code == "ProvisionedThroughputExceededException"
                    and attempt < self.max_retries - 1
                ):
                    wait_time = self.backoff_base * (2**attempt)
                    logger.warning(
                        "Throttled, retrying",
                        operation="token_store_set",
                        context={**context, "attempt": attempt + 1, "wait_seconds": wait_time},
                    )
                    time.sleep(wait_time)
                    continue
                raise self._translate(e, "token_store_set", context) from e
            except (BotoCoreError, OSError) as e:
                logger.error("Network error", operation="token_store_set", context=context, error=str(e))
                raise TokenStoreNetworkError(f"Network error: {e}") from e

    def clear(self) -> None:
        context = {"session_id": self.session_id}
        try:
            self.table.delete_item(Key={"id": self.session_id})
            logger.info("Tokens cleared", operation="token_store_clear", context=context)
        except ClientError as e:
            raise self._translate(e, "token_store_clear", context) from e
        except (BotoCoreError, OSError) as e:
            logger.error("Network error", operation="token_store_clear", context=context, error=str(e))
            raise TokenStoreNetworkError(f"Network error: {e}") from e

    @staticmethod
    def _translate(error: ClientError, operation: str, context: dict) -> TokenStoreError:
        error_code = error.response.get("Error", {}).get("Code", "Unknown")
        if error_code in ("AccessDeniedException", "UnauthorizedOperation"):
            logger.error("Permission denied", operation=operation, context=context, error=error_code)
            return TokenStorePermissionError(f"Insufficient IAM permissions: {error_code}")

        logger.error("DynamoDB error", operation=operation, context=context, error=str(error))
        return TokenStoreError(f"DynamoDB error: {error}")
