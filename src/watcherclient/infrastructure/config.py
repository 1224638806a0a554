"""Configuration management with hierarchical loading."""

import os
from pathlib import Path
from typing import Any

import keyring
import keyring.errors
import yaml
from pydantic import BaseModel, Field

from watcherclient.domain.models import Credential, Scope
from watcherclient.infrastructure.logger import get_logger

logger = get_logger(__name__)

KEYRING_SERVICE = "watcherclient"


class AuthConfig(BaseModel):
    """Keystone credential and scope settings."""

    auth_url: str | None = None
    username: str | None = None
    user_id: str | None = None
    password: str | None = Field(default=None, repr=False)
    user_domain_id: str | None = None
    user_domain_name: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    project_domain_id: str | None = None
    project_domain_name: str | None = None
    domain_id: str | None = None
    domain_name: str | None = None
    token: str | None = Field(default=None, repr=False)
    application_credential_id: str | None = None
    application_credential_name: str | None = None
    application_credential_secret: str | None = Field(default=None, repr=False)
    allow_reauth: bool = True
    interface: str = "public"
    region_name: str | None = None


class ClientConfig(BaseModel):
    """HTTP client settings."""

    timeout: float = Field(default=30.0, gt=0)
    api_version: str = "v1"
    microversion: str | None = None
    endpoint_override: str | None = None


class Config(BaseModel):
    """Main configuration model."""

    version: str = "0.1.0"
    log_level: str = "INFO"
    auth: AuthConfig = Field(default_factory=AuthConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


class ConfigManager:
    """Manage configuration loading from multiple sources with hierarchy."""

    # Standard OpenStack client variables plus client-specific settings
    ENV_MAPPINGS: dict[str, list[str]] = {
        "OS_AUTH_URL": ["auth", "auth_url"],
        "OS_USERNAME": ["auth", "username"],
        "OS_USER_ID": ["auth", "user_id"],
        "OS_PASSWORD": ["auth", "password"],
        "OS_USER_DOMAIN_ID": ["auth", "user_domain_id"],
        "OS_USER_DOMAIN_NAME": ["auth", "user_domain_name"],
        "OS_PROJECT_ID": ["auth", "project_id"],
        "OS_PROJECT_NAME": ["auth", "project_name"],
        "OS_PROJECT_DOMAIN_ID": ["auth", "project_domain_id"],
        "OS_PROJECT_DOMAIN_NAME": ["auth", "project_domain_name"],
        "OS_DOMAIN_ID": ["auth", "domain_id"],
        "OS_DOMAIN_NAME": ["auth", "domain_name"],
        "OS_TOKEN": ["auth", "token"],
        "OS_APPLICATION_CREDENTIAL_ID": ["auth", "application_credential_id"],
        "OS_APPLICATION_CREDENTIAL_NAME": ["auth", "application_credential_name"],
        "OS_APPLICATION_CREDENTIAL_SECRET": ["auth", "application_credential_secret"],
        "OS_INTERFACE": ["auth", "interface"],
        "OS_REGION_NAME": ["auth", "region_name"],
        "WATCHERCLIENT_ALLOW_REAUTH": ["auth", "allow_reauth"],
        "WATCHERCLIENT_LOG_LEVEL": ["log_level"],
        "WATCHERCLIENT_TIMEOUT": ["client", "timeout"],
        "WATCHERCLIENT_API_VERSION": ["client", "api_version"],
        "WATCHERCLIENT_MICROVERSION": ["client", "microversion"],
        "WATCHERCLIENT_ENDPOINT": ["client", "endpoint_override"],
    }

    def __init__(self, project_root: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            project_root: Root directory of the project (default: current directory)
        """
        self.project_root = project_root or Path.cwd()
        self._config: Config | None = None

    def load_config(self) -> Config:
        """Load configuration from all sources in hierarchy order.

        Configuration hierarchy (highest priority last):
        1. System defaults (embedded in Config model)
        2. Project defaults (.watcherclient/config.yaml)
        3. User overrides (~/.watcherclient/config.yaml)
        4. Project overrides (.watcherclient/local.yaml)
        5. Environment variables (OS_* and WATCHERCLIENT_*)

        Returns:
            Merged configuration
        """
        if self._config is not None:
            return self._config

        config_dict: dict[str, Any] = {}

        for path in (
            self.project_root / ".watcherclient" / "config.yaml",
            Path.home() / ".watcherclient" / "config.yaml",
            self.project_root / ".watcherclient" / "local.yaml",
        ):
            if path.exists():
                config_dict = self._merge_dicts(config_dict, self._load_yaml(path))

        config_dict = self._apply_env_vars(config_dict)

        self._config = Config(**config_dict)
        return self._config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML configuration file."""
        with open(path) as f:
            return yaml.safe_load(f) or {}

    def _merge_dicts(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge two dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_vars(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variables; pydantic coerces the string values."""
        for env_var, path in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is None or value == "":
                continue
            current = config_dict
            for key in path[:-1]:
                current = current.setdefault(key, {})
            current[path[-1]] = value

        return config_dict

    def _keyring_user(self, auth: AuthConfig) -> str | None:
        user = auth.username or auth.user_id
        if not user or not auth.auth_url:
            return None
        return f"{user}@{auth.auth_url}"

    def get_password(self) -> str | None:
        """Get the Keystone password from configuration or the system keychain.

        Priority:
        1. OS_PASSWORD environment variable / config files
        2. System keychain (keyed by user and auth URL)

        Returns:
            Password, or None if not stored anywhere
        """
        auth = self.load_config().auth
        if auth.password:
            return auth.password

        keyring_user = self._keyring_user(auth)
        if keyring_user is None:
            return None

        try:
            password = keyring.get_password(KEYRING_SERVICE, keyring_user)
        except keyring.errors.KeyringError as e:
            logger.debug("keychain_read_failed", error=str(e))
            return None

        if password:
            logger.info("password_loaded", source="keychain")
        return password

    def set_password(self, password: str) -> None:
        """Store the Keystone password in the system keychain.

        Raises:
            ValueError: If user/auth URL are not configured or storage fails
        """
        keyring_user = self._keyring_user(self.load_config().auth)
        if keyring_user is None:
            raise ValueError("Set OS_AUTH_URL and OS_USERNAME before storing a password")

        try:
            keyring.set_password(KEYRING_SERVICE, keyring_user, password)
        except keyring.errors.KeyringError as e:
            raise ValueError(f"Failed to store password in keychain: {e}") from e
        logger.info("password_stored", storage="keychain")

    def clear_password(self) -> None:
        """Remove a stored password from the keychain, if any.

        Raises:
            ValueError: If the keychain rejects the removal
        """
        keyring_user = self._keyring_user(self.load_config().auth)
        if keyring_user is None:
            return
        try:
            keyring.delete_password(KEYRING_SERVICE, keyring_user)
        except keyring.errors.PasswordDeleteError:
            logger.debug("keychain_password_absent")
            return
        except keyring.errors.KeyringError as e:
            raise ValueError(f"Failed to remove password from keychain: {e}") from e
        logger.info("password_cleared", storage="keychain")

    def build_credential(self) -> Credential:
        """Build a Credential from the loaded configuration.

        Validation is left to the Authenticator so that errors surface as
        ValidationError in one place.
        """
        auth = self.load_config().auth

        scope_fields = {
            "project_id": auth.project_id,
            "project_name": auth.project_name,
            "project_domain_id": auth.project_domain_id,
            "project_domain_name": auth.project_domain_name,
            "domain_id": auth.domain_id,
            "domain_name": auth.domain_name,
        }
        scope = Scope(**scope_fields) if any(scope_fields.values()) else None

        password = auth.password
        if password is None and (auth.username or auth.user_id):
            password = self.get_password()

        return Credential(
            auth_url=auth.auth_url or "",
            username=auth.username,
            user_id=auth.user_id,
            password=password,
            user_domain_id=auth.user_domain_id,
            user_domain_name=auth.user_domain_name,
            token=auth.token,
            application_credential_id=auth.application_credential_id,
            application_credential_name=auth.application_credential_name,
            application_credential_secret=auth.application_credential_secret,
            scope=scope,
            allow_reauth=auth.allow_reauth,
            interface=auth.interface,
            region_name=auth.region_name,
        )

    def get_log_dir(self) -> Path:
        """Get path to log directory."""
        log_dir = self.project_root / ".watcherclient" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir
