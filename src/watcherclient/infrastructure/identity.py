"""Keystone v3 identity exchange over httpx."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from watcherclient.domain.models import Credential, Scope
from watcherclient.infrastructure.exceptions import AuthenticationError, EndpointNotFoundError
from watcherclient.infrastructure.logger import get_logger

logger = get_logger(__name__)

SUBJECT_TOKEN_HEADER = "X-Subject-Token"


@dataclass(frozen=True)
class IssuedToken:
    """Result of a successful token request."""

    token: str = field(repr=False)
    catalog: list[dict[str, Any]]


def build_auth_request(credential: Credential) -> dict[str, Any]:
    """Build the POST /v3/auth/tokens body for a credential.

    Application credentials carry their own scope, so no scope block is sent
    for them.

    Raises:
        ValueError: If the credential resolves to no authentication method
    """
    method = credential.auth_method
    identity: dict[str, Any]

    if method == "password":
        identity = {
            "methods": ["password"],
            "password": {"user": {**_user_ref(credential), "password": credential.password}},
        }
    elif method == "token":
        identity = {"methods": ["token"], "token": {"id": credential.token}}
    elif method == "application_credential_id":
        identity = {
            "methods": ["application_credential"],
            "application_credential": {
                "id": credential.application_credential_id,
                "secret": credential.application_credential_secret,
            },
        }
    elif method == "application_credential_name":
        app_cred: dict[str, Any] = {
            "name": credential.application_credential_name,
            "secret": credential.application_credential_secret,
        }
        # Names are only unique per user
        user = _user_ref(credential)
        if user:
            app_cred["user"] = user
        identity = {"methods": ["application_credential"], "application_credential": app_cred}
    else:
        raise ValueError("credential does not resolve to an authentication method")

    auth: dict[str, Any] = {"identity": identity}
    if credential.scope is not None and method in ("password", "token"):
        scope = _scope_block(credential.scope)
        if scope:
            auth["scope"] = scope

    return {"auth": auth}


def _user_ref(credential: Credential) -> dict[str, Any]:
    if credential.user_id:
        return {"id": credential.user_id}
    if not credential.username:
        return {}
    user: dict[str, Any] = {"name": credential.username}
    if credential.user_domain_id:
        user["domain"] = {"id": credential.user_domain_id}
    elif credential.user_domain_name:
        user["domain"] = {"name": credential.user_domain_name}
    return user


def _scope_block(scope: Scope) -> dict[str, Any]:
    if scope.project_id:
        return {"project": {"id": scope.project_id}}
    if scope.project_name:
        project: dict[str, Any] = {"name": scope.project_name}
        if scope.project_domain_id:
            project["domain"] = {"id": scope.project_domain_id}
        elif scope.project_domain_name:
            project["domain"] = {"name": scope.project_domain_name}
        return {"project": project}
    if scope.domain_id:
        return {"domain": {"id": scope.domain_id}}
    if scope.domain_name:
        return {"domain": {"name": scope.domain_name}}
    return {}


def find_endpoint(
    catalog: list[dict[str, Any]],
    service_type: str,
    interface: str = "public",
    region_name: str | None = None,
) -> str:
    """Look up a service URL in a Keystone v3 catalog.

    Args:
        catalog: The token's service catalog
        service_type: Service type to match (e.g. "infra-optim")
        interface: Endpoint interface (public, internal, admin)
        region_name: Optional region; matches either "region" or "region_id"

    Returns:
        Endpoint URL without trailing slash

    Raises:
        EndpointNotFoundError: If no endpoint matches
    """
    for service in catalog:
        if not isinstance(service, dict) or service.get("type") != service_type:
            continue
        endpoints = service.get("endpoints")
        if not isinstance(endpoints, list):
            continue
        for endpoint in endpoints:
            if not isinstance(endpoint, dict) or endpoint.get("interface") != interface:
                continue
            if region_name and region_name not in (
                endpoint.get("region"),
                endpoint.get("region_id"),
            ):
                continue
            url = endpoint.get("url")
            if url:
                return str(url).rstrip("/")

    where = f"interface={interface}" + (f", region={region_name}" if region_name else "")
    raise EndpointNotFoundError(f"Failed to locate {service_type} endpoint ({where})")


def parse_expiry(value: Any) -> datetime:
    """Parse a Keystone expires_at timestamp into an aware UTC datetime.

    Raises:
        TypeError: If value is not a string
        ValueError: If value is not an ISO 8601 timestamp
    """
    if not isinstance(value, str):
        raise TypeError(f"expires_at must be a string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class KeystoneIdentityClient:
    """Thin client for the two Keystone v3 calls the authenticator needs.

    Attributes:
        auth_url: Identity endpoint, normalized to end with /v3
    """

    def __init__(
        self,
        auth_url: str,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ):
        """Initialize identity client.

        Args:
            auth_url: Keystone endpoint; "/v3" is appended when missing
            timeout: Request timeout in seconds
            http_client: Optional preconfigured httpx client (owned by caller)
        """
        base = auth_url.rstrip("/")
        if not base.endswith("/v3"):
            base += "/v3"
        self.auth_url = base
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    def issue_token(self, credential: Credential) -> IssuedToken:
        """Exchange a credential for a token and service catalog.

        Raises:
            AuthenticationError: If Keystone is unreachable or rejects the credential
        """
        body = build_auth_request(credential)
        url = f"{self.auth_url}/auth/tokens"

        try:
            response = self._http.post(url, json=body)
        except httpx.HTTPError as e:
            logger.error("identity_request_failed", url=url, error=str(e))
            raise AuthenticationError(
                f"Failed to authenticate: identity service unreachable: {e}",
                remediation="Check OS_AUTH_URL and network connectivity",
            ) from e

        if response.status_code not in (200, 201):
            logger.error(
                "identity_request_rejected",
                url=url,
                status=response.status_code,
                method=credential.auth_method,
            )
            raise AuthenticationError(
                f"Failed to authenticate: identity service returned "
                f"{response.status_code}: {response.text[:200]}",
                remediation="Check credentials and scope",
            )

        token = response.headers.get(SUBJECT_TOKEN_HEADER)
        if not token:
            raise AuthenticationError("Failed to authenticate: response carried no token")

        try:
            data = response.json()
        except ValueError as e:
            raise AuthenticationError("Failed to authenticate: malformed token response") from e

        token_data = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token_data, dict):
            raise AuthenticationError("Failed to authenticate: malformed token response")

        catalog = token_data.get("catalog") or []
        if not isinstance(catalog, list):
            raise AuthenticationError("Failed to authenticate: malformed service catalog")
        return IssuedToken(token=token, catalog=catalog)

    def fetch_token_expiry(self, token: str) -> datetime:
        """Introspect a token and return its expiry.

        Raises:
            AuthenticationError: If the token details cannot be retrieved or parsed
        """
        url = f"{self.auth_url}/auth/tokens"
        headers = {"X-Auth-Token": token, SUBJECT_TOKEN_HEADER: token}

        try:
            response = self._http.get(url, headers=headers)
            response.raise_for_status()
            return parse_expiry(response.json()["token"]["expires_at"])
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            raise AuthenticationError(f"Failed to get token details: {e}") from e

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            self._http.close()
