"""Keystone authenticator with cached token and on-demand refresh."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from watcherclient.domain.models import AuthInfo, Credential
from watcherclient.domain.ports.token_provider import RefreshableTokenProvider
from watcherclient.infrastructure.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    ValidationError,
)
from watcherclient.infrastructure.identity import KeystoneIdentityClient, find_endpoint
from watcherclient.infrastructure.logger import get_logger
from watcherclient.infrastructure.rwlock import ReadWriteLock

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_credential(credential: Credential | None) -> None:
    """Check that a credential can be sent to Keystone.

    Raises:
        ValidationError: If auth_url is missing, no authentication method
            resolves, or the scope names neither project nor domain
    """
    if credential is None:
        raise ValidationError("auth options cannot be None")

    if not credential.auth_url:
        raise ValidationError("identity endpoint (auth_url) is required")

    if credential.auth_method is None:
        raise ValidationError("no valid authentication method provided")

    if credential.scope is not None and credential.scope.is_empty():
        raise ValidationError("scope must specify either project or domain")


@dataclass(frozen=True)
class _AuthState:
    token: str = field(repr=False)
    expires_at: datetime | None
    endpoint: str


class Authenticator(RefreshableTokenProvider):
    """Keystone authenticator for the Watcher service.

    Authenticates on construction and keeps the token, its expiry and the
    infra-optim endpoint. Tokens are refreshed lazily: get_token()
    reauthenticates when the token is within REFRESH_BUFFER_MINUTES of expiry
    and allow_reauth is set. There is no background refresh.

    All state lives behind one reader/writer lock. Reads share it;
    authenticate() holds it exclusively, including for the network round
    trip, so concurrent refreshes serialize. A caller that waited for the
    exclusive lock re-checks expiry before contacting Keystone and reuses
    the token the previous holder obtained.

    Attributes:
        credential: The credential this authenticator was built from
    """

    SERVICE_TYPE = "infra-optim"

    # Refresh this long before expiry
    REFRESH_BUFFER_MINUTES = 5

    def __init__(
        self,
        credential: Credential,
        identity_client: KeystoneIdentityClient | None = None,
        timeout: float = 30.0,
    ):
        """Validate the credential and authenticate immediately.

        Args:
            credential: How to authenticate
            identity_client: Optional identity client (a default one is built
                from credential.auth_url)
            timeout: Identity request timeout in seconds

        Raises:
            ValidationError: If the credential is malformed
            AuthenticationError: If the initial authentication fails
        """
        validate_credential(credential)

        self.credential = credential
        self._owns_identity = identity_client is None
        self._identity = identity_client or KeystoneIdentityClient(
            credential.auth_url, timeout=timeout
        )
        self._lock = ReadWriteLock()
        self._state: _AuthState | None = None

        try:
            self.authenticate()
        except AuthenticationError as e:
            logger.error(
                "initial_authentication_failed",
                auth_url=credential.auth_url,
                error_type=type(e).__name__,
            )
            self.close()
            raise

    @property
    def allow_reauth(self) -> bool:
        return self.credential.allow_reauth

    def authenticate(self) -> None:
        """Perform a full Keystone round trip and replace the cached state.

        On failure the previously cached token, expiry and endpoint are kept.

        Raises:
            AuthenticationError: If the identity exchange fails
            EndpointNotFoundError: If the catalog has no Watcher endpoint
        """
        with self._lock.write_lock():
            self._authenticate_locked()

    def _authenticate_locked(self) -> None:
        issued = self._identity.issue_token(self.credential)

        endpoint = find_endpoint(
            issued.catalog,
            self.SERVICE_TYPE,
            interface=self.credential.interface,
            region_name=self.credential.region_name,
        )

        # Expiry is optional; unknown expiry means the server validates on use
        expires_at: datetime | None = None
        try:
            expires_at = self._identity.fetch_token_expiry(issued.token)
        except AuthenticationError as e:
            logger.warning("token_expiry_unavailable", error=str(e))

        self._state = _AuthState(token=issued.token, expires_at=expires_at, endpoint=endpoint)

        logger.info(
            "keystone_authenticated",
            method=self.credential.auth_method,
            endpoint=endpoint,
            expires_at=expires_at.isoformat() if expires_at else None,
        )

    def get_token(self) -> str:
        """Return a valid token, refreshing it when near expiry.

        Returns:
            The cached token, or a freshly issued one if the cached token
            expires within the refresh buffer

        Raises:
            TokenExpiredError: If the token is near expiry and allow_reauth is off
            AuthenticationError: If the refresh fails
        """
        with self._lock.read_lock():
            state = self._require_state()

        if not self._is_near_expiry(state.expires_at):
            return state.token

        if not self.allow_reauth:
            logger.warning(
                "token_near_expiry_reauth_disabled",
                expires_at=state.expires_at.isoformat() if state.expires_at else None,
            )
            raise TokenExpiredError()

        with self._lock.write_lock():
            current = self._require_state()
            # Another thread may have refreshed while we waited for the lock
            if self._is_near_expiry(current.expires_at):
                logger.info(
                    "proactive_token_refresh",
                    expires_at=current.expires_at.isoformat() if current.expires_at else None,
                )
                self._authenticate_locked()
            else:
                logger.debug("token_already_refreshed")
            return self._require_state().token

    def reauth(self) -> str:
        """Reauthenticate unconditionally and return the new token.

        Raises:
            AuthenticationError: If the identity exchange fails
        """
        logger.info("forced_reauthentication")
        with self._lock.write_lock():
            self._authenticate_locked()
            return self._require_state().token

    def get_endpoint(self) -> str:
        with self._lock.read_lock():
            return self._require_state().endpoint

    def get_token_expiry(self) -> datetime | None:
        with self._lock.read_lock():
            return self._require_state().expires_at

    def is_token_expired(self) -> bool:
        with self._lock.read_lock():
            expires_at = self._require_state().expires_at
        if expires_at is None:
            return False
        return _utcnow() > expires_at

    def get_auth_info(self) -> AuthInfo:
        with self._lock.read_lock():
            expires_at = self._require_state().expires_at

        credential = self.credential
        scope = credential.scope
        now = _utcnow()

        return AuthInfo(
            username=credential.username,
            user_id=credential.user_id,
            project_name=scope.project_name if scope else None,
            project_id=scope.project_id if scope else None,
            domain_name=credential.user_domain_name,
            domain_id=credential.user_domain_id,
            token_expiry=expires_at,
            is_expired=expires_at is not None and now > expires_at,
            time_until_expiry=expires_at - now if expires_at is not None else None,
        )

    def close(self) -> None:
        """Release the identity HTTP connection pool if this instance created it."""
        if self._owns_identity:
            self._identity.close()

    def __enter__(self) -> "Authenticator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _require_state(self) -> _AuthState:
        if self._state is None:
            raise AuthenticationError("Authenticator has not authenticated yet")
        return self._state

    def _is_near_expiry(self, expires_at: datetime | None) -> bool:
        if expires_at is None:
            return False
        buffer = timedelta(minutes=self.REFRESH_BUFFER_MINUTES)
        return expires_at - _utcnow() <= buffer
