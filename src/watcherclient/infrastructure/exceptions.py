"""Custom exception hierarchy for watcherclient authentication and API errors."""


class WatcherClientError(Exception):
    """Base exception for all watcherclient errors."""

    pass


class ValidationError(WatcherClientError):
    """Credential or scope is malformed or incomplete.

    Raised before any network call is made. Never retried.
    """

    pass


class AuthenticationError(WatcherClientError):
    """Base authentication error with optional remediation guidance.

    Attributes:
        message: Error message describing what went wrong
        remediation: Optional guidance on how to fix the issue
    """

    def __init__(self, message: str, remediation: str | None = None):
        """Initialize authentication error.

        Args:
            message: Error message
            remediation: Optional remediation guidance
        """
        super().__init__(message)
        self.remediation = remediation

    def __str__(self) -> str:
        """Return formatted error message with remediation if available."""
        if self.remediation:
            return f"{self.args[0]}\n\nRemediation: {self.remediation}"
        return str(self.args[0])


class EndpointNotFoundError(AuthenticationError):
    """Keystone accepted the credential but the catalog has no Watcher endpoint."""

    def __init__(self, message: str = "No infra-optim endpoint found in service catalog"):
        super().__init__(
            message=message,
            remediation="Check that Watcher is registered in Keystone and that "
            "OS_INTERFACE / OS_REGION_NAME match the catalog",
        )


class TokenExpiredError(AuthenticationError):
    """Token is expired or about to expire and automatic reauth is disabled.

    The caller must reauthenticate explicitly.
    """

    def __init__(self, message: str = "Token expired and auto-reauth is disabled"):
        super().__init__(
            message=message,
            remediation="Call reauth() or construct the authenticator with allow_reauth=True",
        )


class EmptyTokenError(AuthenticationError):
    """A fixed-token authenticator holds no token."""

    def __init__(self, message: str = "Token is empty"):
        super().__init__(message=message, remediation="Provide a token issued by Keystone")


class ReauthenticationError(AuthenticationError):
    """Reauthentication triggered by a 401 response failed."""

    def __init__(self, message: str = "Re-authentication failed"):
        super().__init__(
            message=message,
            remediation="Check identity service availability and credentials",
        )


class AuthenticationFailedError(AuthenticationError):
    """Watcher rejected the token and the provider cannot refresh it."""

    def __init__(self, message: str = "Authentication failed: token expired or invalid"):
        super().__init__(
            message=message,
            remediation="Obtain a new token or authenticate with credentials and allow_reauth=True",
        )


class SessionNotFoundError(WatcherClientError):
    """No session is registered under the requested name.

    Attributes:
        name: The session name that was looked up
    """

    def __init__(self, name: str):
        super().__init__(f"Session '{name}' not found")
        self.name = name


class TransportError(WatcherClientError):
    """The HTTP request to Watcher could not be completed (connect error, timeout)."""

    pass


class APIError(WatcherClientError):
    """Watcher answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code
        message: Response body text
        method: HTTP method of the failed request
        url: Full request URL
    """

    def __init__(self, status_code: int, message: str, method: str, url: str):
        super().__init__(f"API error: {method} {url} returned {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.method = method
        self.url = url

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403


def is_not_found(error: BaseException) -> bool:
    """Return True if error is an APIError with status 404."""
    return isinstance(error, APIError) and error.is_not_found


def is_conflict(error: BaseException) -> bool:
    """Return True if error is an APIError with status 409."""
    return isinstance(error, APIError) and error.is_conflict


def is_unauthorized(error: BaseException) -> bool:
    """Return True if error is an APIError with status 401."""
    return isinstance(error, APIError) and error.is_unauthorized


def is_forbidden(error: BaseException) -> bool:
    """Return True if error is an APIError with status 403."""
    return isinstance(error, APIError) and error.is_forbidden
