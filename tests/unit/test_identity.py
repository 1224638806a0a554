"""Unit tests for the Keystone v3 identity exchange."""

from collections.abc import Callable
from datetime import datetime, timezone

import httpx
import pytest
from watcherclient.domain.models import Credential, Scope
from watcherclient.infrastructure.exceptions import AuthenticationError, EndpointNotFoundError
from watcherclient.infrastructure.identity import (
    KeystoneIdentityClient,
    build_auth_request,
    find_endpoint,
    parse_expiry,
)

from tests.fakes import AUTH_URL, WATCHER_URL, default_catalog


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> KeystoneIdentityClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return KeystoneIdentityClient(AUTH_URL, http_client=http)


class TestBuildAuthRequest:
    """Test token request bodies for each authentication method."""

    def test_password_with_user_id(self) -> None:
        """Test that user_id is sent without a domain."""
        credential = Credential(auth_url=AUTH_URL, user_id="uid-1", password="p")

        body = build_auth_request(credential)

        assert body == {
            "auth": {
                "identity": {
                    "methods": ["password"],
                    "password": {"user": {"id": "uid-1", "password": "p"}},
                }
            }
        }

    def test_password_with_project_id_scope(self) -> None:
        """Test project id scoping."""
        credential = Credential(
            auth_url=AUTH_URL,
            username="u",
            password="p",
            user_domain_id="default",
            scope=Scope(project_id="p-1"),
        )

        auth = build_auth_request(credential)["auth"]

        assert auth["identity"]["password"]["user"]["domain"] == {"id": "default"}
        assert auth["scope"] == {"project": {"id": "p-1"}}

    def test_domain_scope(self) -> None:
        """Test domain scoping."""
        credential = Credential(
            auth_url=AUTH_URL, username="u", password="p", scope=Scope(domain_name="Default")
        )

        assert build_auth_request(credential)["auth"]["scope"] == {"domain": {"name": "Default"}}

    def test_token_method(self) -> None:
        """Test token exchange with scope."""
        credential = Credential(auth_url=AUTH_URL, token="t-1", scope=Scope(project_id="p-1"))

        auth = build_auth_request(credential)["auth"]

        assert auth["identity"] == {"methods": ["token"], "token": {"id": "t-1"}}
        assert auth["scope"] == {"project": {"id": "p-1"}}

    def test_application_credential_id_has_no_scope(self) -> None:
        """Test that application credentials never send a scope block."""
        credential = Credential(
            auth_url=AUTH_URL,
            application_credential_id="ac-1",
            application_credential_secret="s",
            scope=Scope(project_id="p-1"),
        )

        auth = build_auth_request(credential)["auth"]

        assert auth["identity"] == {
            "methods": ["application_credential"],
            "application_credential": {"id": "ac-1", "secret": "s"},
        }
        assert "scope" not in auth

    def test_application_credential_name_includes_user(self) -> None:
        """Test that a named application credential is qualified by its user."""
        credential = Credential(
            auth_url=AUTH_URL,
            username="u",
            user_domain_name="Default",
            application_credential_name="my-cred",
            application_credential_secret="s",
        )

        app_cred = build_auth_request(credential)["auth"]["identity"]["application_credential"]

        assert app_cred == {
            "name": "my-cred",
            "secret": "s",
            "user": {"name": "u", "domain": {"name": "Default"}},
        }

    def test_password_takes_precedence(self) -> None:
        """Test method resolution when several methods are populated."""
        credential = Credential(
            auth_url=AUTH_URL,
            username="u",
            password="p",
            token="t",
            application_credential_id="ac-1",
            application_credential_secret="s",
        )

        assert credential.auth_method == "password"
        assert build_auth_request(credential)["auth"]["identity"]["methods"] == ["password"]

    def test_token_precedes_application_credential(self) -> None:
        """Test that a token wins over an application credential."""
        credential = Credential(
            auth_url=AUTH_URL,
            token="t",
            application_credential_name="n",
            application_credential_secret="s",
        )

        assert credential.auth_method == "token"

    def test_no_method_raises(self) -> None:
        """Test that an unusable credential is refused."""
        with pytest.raises(ValueError):
            build_auth_request(Credential(auth_url=AUTH_URL))


class TestFindEndpoint:
    """Test service catalog lookup."""

    def test_public_endpoint(self) -> None:
        """Test the default interface lookup."""
        assert find_endpoint(default_catalog(), "infra-optim") == WATCHER_URL

    def test_trailing_slash_stripped(self) -> None:
        """Test that the returned URL has no trailing slash."""
        catalog = default_catalog(watcher_url=WATCHER_URL + "/")

        assert find_endpoint(catalog, "infra-optim") == WATCHER_URL

    def test_region_matches_region_id(self) -> None:
        """Test that region_id alone is enough to match."""
        catalog = [
            {
                "type": "infra-optim",
                "endpoints": [
                    {"interface": "public", "region_id": "r2", "url": "https://r2.example"},
                ],
            }
        ]

        assert find_endpoint(catalog, "infra-optim", region_name="r2") == "https://r2.example"

    def test_wrong_interface_raises(self) -> None:
        """Test that a missing interface is reported."""
        with pytest.raises(EndpointNotFoundError, match="interface=admin"):
            find_endpoint(default_catalog(), "infra-optim", interface="admin")

    def test_empty_catalog_raises(self) -> None:
        """Test lookup in an empty catalog."""
        with pytest.raises(EndpointNotFoundError):
            find_endpoint([], "infra-optim")

    def test_malformed_entries_are_skipped(self) -> None:
        """Test that non-object services and endpoints do not break the lookup."""
        catalog = [
            "compute",
            {"type": "infra-optim", "endpoints": None},
            {"type": "infra-optim", "endpoints": ["https://bad.example"]},
            *default_catalog(),
        ]

        assert find_endpoint(catalog, "infra-optim") == WATCHER_URL


class TestParseExpiry:
    """Test Keystone timestamp parsing."""

    def test_zulu_suffix(self) -> None:
        """Test the format Keystone emits."""
        parsed = parse_expiry("2026-01-01T13:00:00.000000Z")

        assert parsed == datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)

    def test_offset_is_normalized_to_utc(self) -> None:
        """Test that offsets are converted to UTC."""
        parsed = parse_expiry("2026-01-01T15:00:00+02:00")

        assert parsed == datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_naive_assumed_utc(self) -> None:
        """Test that a naive timestamp is treated as UTC."""
        assert parse_expiry("2026-01-01T13:00:00").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, 1767272400])
    def test_non_string_raises_type_error(self, value: object) -> None:
        """Test that a missing or numeric expires_at is rejected."""
        with pytest.raises(TypeError, match="must be a string"):
            parse_expiry(value)


class TestKeystoneIdentityClient:
    """Test the HTTP side of the identity exchange."""

    def test_v3_appended_to_auth_url(self) -> None:
        """Test auth_url normalization."""
        assert KeystoneIdentityClient("https://keystone.example/").auth_url == AUTH_URL
        assert KeystoneIdentityClient(AUTH_URL).auth_url == AUTH_URL

    def test_issue_token(self) -> None:
        """Test a successful token request."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                201,
                headers={"X-Subject-Token": "tok-1"},
                json={"token": {"catalog": default_catalog()}},
            )

        issued = _client(handler).issue_token(Credential(auth_url=AUTH_URL, token="t"))

        assert issued.token == "tok-1"
        assert issued.catalog == default_catalog()
        assert seen[0].method == "POST"
        assert str(seen[0].url) == f"{AUTH_URL}/auth/tokens"

    def test_issued_token_hidden_from_repr(self) -> None:
        """Test that the token does not leak into reprs."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, headers={"X-Subject-Token": "secret"}, json={"token": {}})

        issued = _client(handler).issue_token(Credential(auth_url=AUTH_URL, token="t"))

        assert "secret" not in repr(issued)
        assert issued.catalog == []

    def test_unreachable_identity_service(self) -> None:
        """Test that connection errors become AuthenticationError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthenticationError, match="unreachable") as exc_info:
            _client(handler).issue_token(Credential(auth_url=AUTH_URL, token="t"))

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.remediation is not None

    def test_rejected_request(self) -> None:
        """Test that a non-2xx answer becomes AuthenticationError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="unauthorized")

        with pytest.raises(AuthenticationError, match="returned 401"):
            _client(handler).issue_token(Credential(auth_url=AUTH_URL, token="t"))

    def test_missing_subject_token(self) -> None:
        """Test a 201 without the X-Subject-Token header."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json={"token": {}})

        with pytest.raises(AuthenticationError, match="no token"):
            _client(handler).issue_token(Credential(auth_url=AUTH_URL, token="t"))

    @pytest.mark.parametrize(
        "body",
        [
            {"token": None},
            {"token": "tok-1"},
            ["token"],
            {"token": {"catalog": {"type": "infra-optim"}}},
        ],
    )
    def test_malformed_token_response(self, body: object) -> None:
        """Test that a 201 with an unusable body is an AuthenticationError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json=body, headers={"X-Subject-Token": "tok-1"})

        with pytest.raises(AuthenticationError, match="malformed"):
            _client(handler).issue_token(Credential(auth_url=AUTH_URL, token="t"))

    def test_fetch_token_expiry(self) -> None:
        """Test token introspection headers and parsing."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"token": {"expires_at": "2026-01-01T13:00:00Z"}})

        expiry = _client(handler).fetch_token_expiry("tok-1")

        assert expiry == datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)
        assert seen[0].method == "GET"
        assert seen[0].headers["X-Auth-Token"] == "tok-1"
        assert seen[0].headers["X-Subject-Token"] == "tok-1"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404),
            httpx.Response(200, json={"token": {}}),
            httpx.Response(200, json={"token": {"expires_at": "not a date"}}),
            httpx.Response(200, text="<html>"),
            httpx.Response(200, json={"token": {"expires_at": None}}),
            httpx.Response(200, json={"token": {"expires_at": 1767272400}}),
            httpx.Response(200, json={"token": None}),
            httpx.Response(200, json=[]),
        ],
    )
    def test_fetch_token_expiry_failures(self, response: httpx.Response) -> None:
        """Test that every introspection failure is an AuthenticationError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return response

        with pytest.raises(AuthenticationError, match="Failed to get token details"):
            _client(handler).fetch_token_expiry("tok-1")
