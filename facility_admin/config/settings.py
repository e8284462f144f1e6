"""
Configuration loader for the facility admin client.

Resolves settings from environment variables, an optional YAML file
validated against a JSON schema, and admin credentials from the
environment, a local secrets file, or AWS Secrets Manager.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Set

import boto3
import jsonschema
import yaml
from botocore.exceptions import ClientError

from ..api.client import ApiClient
from ..api.dashboard import DashboardAPI
from ..auth.token_store import (
    DynamoDBTokenStore,
    FileTokenStore,
    InMemoryTokenStore,
    TokenStore,
)

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration is missing, unreadable or invalid."""


# NOTE: This is a secret NAME, not a secret VALUE.
ADMIN_SECRET_ID = "facility-admin/admin-credentials"  # nosec B105

DEFAULT_API_BASE_URL = "http://localhost:3001"
# Used only when neither AWS_REGION, the YAML "region" nor AWS_DEFAULT_REGION is set
DEFAULT_REGION = "us-east-1"
DEFAULT_CONFIG_FILE = "config/dashboard.yaml"
SCHEMA_FILE = Path(__file__).resolve().parent / "dashboard.schema.json"

TOKEN_STORE_BACKENDS = ("memory", "file", "dynamodb")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


REDACTED = "***REDACTED***"
MIN_SECRET_LENGTH = 4


def _iter_strings(obj: Any, depth: int = 5) -> Iterator[str]:
    """Yield every string leaf of a nested dict/list structure."""
    if depth <= 0:
        return
    if isinstance(obj, str):
        yield obj
    elif isinstance(obj, dict):
        for value in obj.values():
            yield from _iter_strings(value, depth - 1)
    elif isinstance(obj, (list, tuple)):
        for item in obj:
            yield from _iter_strings(item, depth - 1)


class SecretRedactionFilter(logging.Filter):
    """
    Replaces known secret values in log records with ``***REDACTED***``.

    Seeded from a credentials mapping; tokens issued later are added with
    ``add_secret``. Values shorter than four characters are never tracked.
    """

    def __init__(self, secrets: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.secrets = secrets or {}
        self.redacted_values: Set[str] = set()
        for value in _iter_strings(self.secrets):
            self.add_secret(value)

    def add_secret(self, value: Optional[str]) -> None:
        if value and len(value) >= MIN_SECRET_LENGTH:
            self.redacted_values.add(value)

    def redact(self, text: str) -> str:
        # Longest first so a secret containing another is replaced whole
        for secret in sorted(self.redacted_values, key=len, reverse=True):
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.redacted_values:
            return True
        record.msg = self.redact(str(record.msg))
        if isinstance(record.args, dict):
            record.args = {key: self.redact(str(value)) for key, value in record.args.items()}
        elif record.args:
            record.args = tuple(self.redact(str(arg)) for arg in record.args)
        return True


class Settings:
    """
    Runtime configuration.

    Precedence: environment variables, then the YAML file, then defaults.

    Environment:
        FACILITY_ADMIN_API_BASE_URL: Backend root URL
        FACILITY_ADMIN_REQUEST_TIMEOUT: Seconds; unset means no client timeout
        FACILITY_ADMIN_TOKEN_STORE: memory | file | dynamodb
        FACILITY_ADMIN_TOKEN_FILE: Path for the file token store
        FACILITY_ADMIN_TOKEN_TABLE: DynamoDB table for the dynamodb token store
        FACILITY_ADMIN_CONFIG: YAML config path (default: config/dashboard.yaml)
        AWS_REGION: Region for DynamoDB and Secrets Manager; falls back to the
            YAML "region", then AWS_DEFAULT_REGION, then us-east-1
        USE_LOCAL_SECRETS_FILE / LOCAL_SECRETS_FILE_PATH: local credential file
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        region_name: Optional[str] = None,
    ):
        self.config_path = config_path or os.getenv("FACILITY_ADMIN_CONFIG", DEFAULT_CONFIG_FILE)
        self.file_config = self._load_config_file(self.config_path, required=config_path is not None)

        self.api_base_url: str = self._resolve(
            "FACILITY_ADMIN_API_BASE_URL", "api_base_url", DEFAULT_API_BASE_URL
        )
        timeout = self._resolve("FACILITY_ADMIN_REQUEST_TIMEOUT", "request_timeout", None)
        try:
            self.request_timeout: Optional[float] = float(timeout) if timeout else None
        except ValueError as e:
            raise ConfigurationError(f"Invalid request timeout: {timeout!r}") from e

        self.token_store_backend: str = self._resolve(
            "FACILITY_ADMIN_TOKEN_STORE", "token_store", "file"
        )
        if self.token_store_backend not in TOKEN_STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown token store '{self.token_store_backend}'. "
                f"Expected one of: {', '.join(TOKEN_STORE_BACKENDS)}"
            )

        self.token_file: Optional[str] = self._resolve("FACILITY_ADMIN_TOKEN_FILE", "token_file", None)
        self.token_table: str = self._resolve("FACILITY_ADMIN_TOKEN_TABLE", "token_table", "session")
        self.region_name: str = region_name or self._resolve(
            "AWS_REGION", "region", os.getenv("AWS_DEFAULT_REGION") or DEFAULT_REGION
        )

        self.use_local_secrets = _env_flag("USE_LOCAL_SECRETS_FILE")
        self.local_secrets_file = os.getenv("LOCAL_SECRETS_FILE_PATH", ".local/secrets.json")

    def _resolve(self, env_name: str, config_key: str, default: Any) -> Any:
        env_value = os.getenv(env_name)
        if env_value:
            return env_value
        return self.file_config.get(config_key, default)

    @staticmethod
    def _load_config_file(path: str, required: bool = False) -> Dict[str, Any]:
        """
        Load and schema-validate the YAML configuration.

        A missing default file is not an error; a missing explicit file is.

        Raises:
            ConfigurationError: If the file is unreadable, not YAML, or invalid
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            if required:
                raise ConfigurationError(f"Configuration file not found: {path}")
            logger.debug(f"No configuration file at {path}; using environment and defaults")
            return {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if not config:
            return {}

        try:
            with open(SCHEMA_FILE, "r", encoding="utf-8") as f:
                schema = json.load(f)
            jsonschema.validate(instance=config, schema=schema)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration schema not found: {SCHEMA_FILE}") from e
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e.message}") from e

        logger.info(f"Loaded configuration from {path}")
        return config

    # ------------------------------------------------------------------ #
    # Factories
    # ------------------------------------------------------------------ #

    def build_token_store(self, dynamodb_resource: Optional[Any] = None) -> TokenStore:
        if self.token_store_backend == "memory":
            return InMemoryTokenStore()
        if self.token_store_backend == "dynamodb":
            resource = dynamodb_resource or boto3.resource("dynamodb", region_name=self.region_name)
            return DynamoDBTokenStore(table_name=self.token_table, dynamodb_resource=resource)
        return FileTokenStore(Path(self.token_file) if self.token_file else None)

    def build_api(self, token_store: Optional[TokenStore] = None) -> DashboardAPI:
        client = ApiClient(
            base_url=self.api_base_url,
            token_store=token_store or self.build_token_store(),
            timeout=self.request_timeout,
        )
        return DashboardAPI(client)

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    def load_admin_credentials(self) -> Dict[str, str]:
        """
        Load dashboard login credentials.

        Priority:
        1. FACILITY_ADMIN_EMAIL / FACILITY_ADMIN_PASSWORD environment variables
        2. Local secrets file (when USE_LOCAL_SECRETS_FILE=true), key "admin"
        3. AWS Secrets Manager secret ADMIN_SECRET_ID

        Returns:
            Dictionary with 'email' and 'password' keys

        Raises:
            RuntimeError: If credentials cannot be loaded
        """
        email = os.getenv("FACILITY_ADMIN_EMAIL")
        password = os.getenv("FACILITY_ADMIN_PASSWORD")
        if email and password:
            return {"email": email, "password": password}

        if self.use_local_secrets:
            credentials = self._load_from_local_file(self.local_secrets_file).get("admin", {})
        else:
            credentials = self._get_secret_value(ADMIN_SECRET_ID, region_name=self.region_name)

        if "email" not in credentials or "password" not in credentials:
            raise RuntimeError(
                f"Admin credentials missing required keys. "
                f"Expected: email, password. Got: {list(credentials.keys())}"
            )
        return credentials

    @staticmethod
    def _get_secret_value(
        secret_id: str,
        region_name: str = DEFAULT_REGION,
        max_retries: int = 3,
        base_wait: float = 1.0,
    ) -> Dict[str, Any]:
        """
        Fetch secret from Secrets Manager with exponential backoff.

        Raises:
            RuntimeError: If secret cannot be retrieved after retries
        """
        client = boto3.client("secretsmanager", region_name=region_name)

        for attempt in range(max_retries):
            try:
                response = client.get_secret_value(SecretId=secret_id)
                secret_string = response.get("SecretString")
                if not secret_string:
                    raise RuntimeError(f"Secret {secret_id} has empty value")
                return json.loads(secret_string)
            except ClientError as e:
                error_code = e.response["Error"]["Code"]
                if error_code == "ResourceNotFoundException":
                    raise RuntimeError(
                        f"Secret '{secret_id}' not found in Secrets Manager ({region_name})"
                    ) from e
                if error_code in ("AccessDeniedException", "UnauthorizedOperation"):
                    raise RuntimeError(f"Access denied to secret '{secret_id}'") from e
                if attempt < max_retries - 1:
                    wait_time = base_wait * (2**attempt)
                    logger.warning(
                        f"Transient error fetching secret {secret_id}: {error_code}. "
                        f"Retrying in {wait_time}s (attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(wait_time)
                else:
                    raise RuntimeError(
                        f"Failed to retrieve secret '{secret_id}' after {max_retries} attempts: {error_code}"
                    ) from e
            except json.JSONDecodeError as e:
                raise RuntimeError(f"Secret '{secret_id}' contains invalid JSON: {e}") from e

        raise RuntimeError(f"Failed to retrieve secret '{secret_id}' - exhausted all retry attempts")

    @staticmethod
    def _load_from_local_file(filepath: str) -> Dict[str, Any]:
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise RuntimeError(
                f"Local secrets file not found: {filepath}. "
                f"Use AWS Secrets Manager or set LOCAL_SECRETS_FILE_PATH"
            )
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Local secrets file contains invalid JSON: {e}")


def setup_logging_redaction(secrets: Optional[Dict[str, Any]] = None) -> SecretRedactionFilter:
    """
    Attach one SecretRedactionFilter to the root logger and every
    facility_admin logger created so far.
    """
    redaction_filter = SecretRedactionFilter(secrets)
    logging.getLogger().addFilter(redaction_filter)
    for name, candidate in logging.root.manager.loggerDict.items():
        if name.startswith("facility_admin") and isinstance(candidate, logging.Logger):
            candidate.addFilter(redaction_filter)
    return redaction_filter
