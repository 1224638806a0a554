"""Token provider capabilities consumed by the Watcher request executor."""

from abc import ABC, abstractmethod
from datetime import datetime

from watcherclient.domain.models import AuthInfo


class TokenProvider(ABC):
    """Supplies a bearer token and the Watcher endpoint for outbound requests.

    This is the minimal capability the HTTP client needs. Implementations
    that cannot refresh their token (a pre-issued token, for instance)
    stop here.
    """

    @abstractmethod
    def get_token(self) -> str:
        """Return a token to send as X-Auth-Token.

        Raises:
            AuthenticationError: If no usable token can be produced
        """
        pass

    @abstractmethod
    def get_endpoint(self) -> str:
        """Return the Watcher service base URL (without API version)."""
        pass


class RefreshableTokenProvider(TokenProvider):
    """Token provider that can obtain a fresh token on demand.

    The request executor checks for this tier when Watcher answers 401
    and, if allow_reauth is set, calls reauth() and retries once.
    """

    @property
    @abstractmethod
    def allow_reauth(self) -> bool:
        """Whether the provider may reauthenticate without caller involvement."""
        pass

    @abstractmethod
    def reauth(self) -> str:
        """Force a full reauthentication and return the new token.

        Raises:
            AuthenticationError: If the identity exchange fails
        """
        pass

    @abstractmethod
    def get_token_expiry(self) -> datetime | None:
        """Return the cached token expiry, or None when unknown."""
        pass

    @abstractmethod
    def is_token_expired(self) -> bool:
        """Check expiry locally, without network calls.

        Returns:
            True only when the expiry is known and in the past
        """
        pass

    @abstractmethod
    def get_auth_info(self) -> AuthInfo:
        """Return a diagnostics snapshot. Never triggers a refresh."""
        pass
