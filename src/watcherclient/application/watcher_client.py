"""Watcher API client with token handling and one-shot reauth on 401."""

from typing import TYPE_CHECKING, Any

import httpx

from watcherclient import __version__
from watcherclient.application.resources import (
    ActionManager,
    ActionPlanManager,
    AuditManager,
    AuditTemplateManager,
    DataModelManager,
    GoalManager,
    StrategyManager,
)
from watcherclient.domain.models import AuthInfo, Credential
from watcherclient.domain.ports.token_provider import RefreshableTokenProvider, TokenProvider
from watcherclient.infrastructure.exceptions import (
    APIError,
    AuthenticationError,
    AuthenticationFailedError,
    ReauthenticationError,
    TransportError,
    WatcherClientError,
)
from watcherclient.infrastructure.logger import get_logger

if TYPE_CHECKING:
    from watcherclient.infrastructure.config import ConfigManager
    from watcherclient.infrastructure.identity import KeystoneIdentityClient

logger = get_logger(__name__)

DEFAULT_API_VERSION = "v1"
DEFAULT_TIMEOUT = 30.0


class WatcherClient:
    """Client for the Watcher REST API.

    Every request asks the bound token provider for a token first. When
    Watcher answers 401 and the provider is refreshable with allow_reauth
    set, the client reauthenticates and retries the request exactly once;
    whatever the retry returns is what the caller gets.

    Attributes:
        token_provider: Source of tokens and of the service endpoint
        microversion: Optional value for the OpenStack-API-Version header
        audits, audit_templates, action_plans, actions, goals, strategies,
        data_model: Resource managers
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        timeout: float = DEFAULT_TIMEOUT,
        api_version: str = DEFAULT_API_VERSION,
        microversion: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        """Initialize Watcher client.

        Args:
            token_provider: Authenticator or TokenAuthenticator
            timeout: Request timeout in seconds
            api_version: Path segment appended to the endpoint
            microversion: Sent as "infra-optim <microversion>" when set
            http_client: Optional preconfigured httpx client (owned by caller)
        """
        self.token_provider = token_provider
        self.microversion = microversion
        self._api_version = api_version
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)
        self._owns_provider = False

        self.audits = AuditManager(self)
        self.audit_templates = AuditTemplateManager(self)
        self.action_plans = ActionPlanManager(self)
        self.actions = ActionManager(self)
        self.goals = GoalManager(self)
        self.strategies = StrategyManager(self)
        self.data_model = DataModelManager(self)

        logger.debug(
            "watcher_client_initialized",
            provider=type(token_provider).__name__,
            refreshable=isinstance(token_provider, RefreshableTokenProvider),
            api_version=api_version,
        )

    @classmethod
    def from_credential(
        cls,
        credential: Credential,
        timeout: float = DEFAULT_TIMEOUT,
        api_version: str = DEFAULT_API_VERSION,
        microversion: str | None = None,
        http_client: httpx.Client | None = None,
        identity_client: "KeystoneIdentityClient | None" = None,
    ) -> "WatcherClient":
        """Authenticate with Keystone and build a client bound to the result.

        Raises:
            ValidationError: If the credential is malformed
            AuthenticationError: If authentication fails
        """
        from watcherclient.infrastructure.keystone_auth import Authenticator

        authenticator = Authenticator(credential, identity_client=identity_client, timeout=timeout)
        try:
            client = cls(
                authenticator,
                timeout=timeout,
                api_version=api_version,
                microversion=microversion,
                http_client=http_client,
            )
        except Exception:
            authenticator.close()
            raise
        client._owns_provider = True
        return client

    @classmethod
    def from_token(
        cls,
        endpoint: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        api_version: str = DEFAULT_API_VERSION,
        microversion: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> "WatcherClient":
        """Build a client around an existing token and a known endpoint."""
        from watcherclient.infrastructure.token_auth import TokenAuthenticator

        return cls(
            TokenAuthenticator(endpoint, token),
            timeout=timeout,
            api_version=api_version,
            microversion=microversion,
            http_client=http_client,
        )

    @classmethod
    def from_config(cls, config_manager: "ConfigManager | None" = None) -> "WatcherClient":
        """Build a client from configuration files and environment.

        A configured token plus endpoint override skips Keystone entirely.
        """
        from watcherclient.infrastructure.config import ConfigManager

        manager = config_manager or ConfigManager()
        config = manager.load_config()

        if config.auth.token and config.client.endpoint_override:
            return cls.from_token(
                config.client.endpoint_override,
                config.auth.token,
                timeout=config.client.timeout,
                api_version=config.client.api_version,
                microversion=config.client.microversion,
            )

        return cls.from_credential(
            manager.build_credential(),
            timeout=config.client.timeout,
            api_version=config.client.api_version,
            microversion=config.client.microversion,
        )

    @property
    def endpoint(self) -> str:
        """Versioned Watcher base URL."""
        return f"{self.token_provider.get_endpoint().rstrip('/')}/{self._api_version}"

    @property
    def api_version(self) -> str:
        return self._api_version

    @api_version.setter
    def api_version(self, version: str) -> None:
        self._api_version = version

    @property
    def timeout(self) -> float | None:
        return self._http.timeout.read

    @timeout.setter
    def timeout(self, seconds: float) -> None:
        self._http.timeout = httpx.Timeout(seconds)

    def get_auth_info(self) -> AuthInfo | None:
        """Return authentication diagnostics, or None for fixed-token providers."""
        if isinstance(self.token_provider, RefreshableTokenProvider):
            return self.token_provider.get_auth_info()
        return None

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send an authenticated request to Watcher.

        Args:
            method: HTTP method
            path: Path relative to the versioned endpoint (e.g. "/audits")
            json: Optional JSON body
            params: Optional query parameters

        Returns:
            The 2xx response

        Raises:
            AuthenticationError: If the provider cannot supply a token
            ReauthenticationError: If the 401-triggered reauth fails
            AuthenticationFailedError: On 401 when the provider cannot reauth
            APIError: On any other non-2xx status, or a 401 on the retry
            TransportError: If the request cannot be sent
        """
        token = self.token_provider.get_token()
        response = self._send(method, path, token, json, params)

        if response.status_code == 401:
            response.close()
            provider = self.token_provider

            if not (isinstance(provider, RefreshableTokenProvider) and provider.allow_reauth):
                logger.warning("request_unauthorized", method=method, path=path)
                raise AuthenticationFailedError()

            logger.info("request_unauthorized_reauthenticating", method=method, path=path)
            try:
                token = provider.reauth()
            except AuthenticationError as e:
                logger.error("reauthentication_failed", error=str(e.args[0]))
                raise ReauthenticationError(f"Re-authentication failed: {e.args[0]}") from e

            # Single retry; its outcome is final
            response = self._send(method, path, token, json, params)

        if not response.is_success:
            raise self._api_error(method, response)

        return response

    def request_json(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and decode its JSON body. An empty body yields None."""
        response = self.request(method, path, json=json, params=params)
        return self._parse(response)

    def ping(self) -> None:
        """Check that the Watcher API answers an authenticated request."""
        self.request("GET", "/").close()

    def get_version(self) -> dict[str, Any]:
        """Fetch the unauthenticated version document from the service root."""
        url = f"{self.token_provider.get_endpoint().rstrip('/')}/"
        try:
            response = self._http.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        if not response.is_success:
            raise self._api_error("GET", response)
        result = self._parse(response)
        return result if isinstance(result, dict) else {}

    def close(self) -> None:
        """Close HTTP resources owned by this client."""
        if self._owns_http:
            self._http.close()
        if self._owns_provider:
            close = getattr(self.token_provider, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "WatcherClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _headers(self, token: str) -> dict[str, str]:
        headers = {
            "X-Auth-Token": token,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"python-watcherclient/{__version__}",
        }
        if self.microversion:
            headers["OpenStack-API-Version"] = f"infra-optim {self.microversion}"
        return headers

    def _send(
        self,
        method: str,
        path: str,
        token: str,
        json: Any,
        params: dict[str, str] | None,
    ) -> httpx.Response:
        url = f"{self.endpoint}{path}"
        try:
            return self._http.request(
                method, url, json=json, params=params, headers=self._headers(token)
            )
        except httpx.HTTPError as e:
            logger.error("request_failed", method=method, url=url, error=str(e))
            raise TransportError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _api_error(method: str, response: httpx.Response) -> APIError:
        logger.debug("api_error", method=method, url=str(response.url), status=response.status_code)
        return APIError(
            status_code=response.status_code,
            message=response.text,
            method=method,
            url=str(response.url),
        )

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise WatcherClientError(
                f"failed to parse response: {e} (body: {response.text[:200]})"
            ) from e
