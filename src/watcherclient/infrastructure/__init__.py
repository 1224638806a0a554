"""Infrastructure layer for watcherclient."""

from watcherclient.infrastructure.config import Config, ConfigManager
from watcherclient.infrastructure.keystone_auth import Authenticator, validate_credential
from watcherclient.infrastructure.logger import get_logger, setup_logging
from watcherclient.infrastructure.token_auth import TokenAuthenticator

__all__ = [
    "Authenticator",
    "Config",
    "ConfigManager",
    "TokenAuthenticator",
    "get_logger",
    "setup_logging",
    "validate_credential",
]
