"""Fixed-token provider for callers that already hold a Keystone token."""

from watcherclient.domain.ports.token_provider import TokenProvider
from watcherclient.infrastructure.exceptions import EmptyTokenError


class TokenAuthenticator(TokenProvider):
    """Token provider wrapping a pre-issued token and a known endpoint.

    The token is never refreshed and has no expiry tracking. When Watcher
    rejects it the request fails with AuthenticationFailedError.

    Attributes:
        endpoint: Watcher service base URL
    """

    def __init__(self, endpoint: str, token: str):
        self.endpoint = endpoint
        self._token = token

    def get_token(self) -> str:
        """Return the stored token.

        Raises:
            EmptyTokenError: If the token is the empty string
        """
        if not self._token:
            raise EmptyTokenError()
        return self._token

    def get_endpoint(self) -> str:
        return self.endpoint
