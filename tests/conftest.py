"""Pytest configuration and fixtures."""

from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import patch

import pytest
from watcherclient.domain.models import Credential, Scope
from watcherclient.infrastructure.keystone_auth import Authenticator

from tests.fakes import AUTH_URL, T0, FakeClock, FakeKeystone, FakeWatcher


@pytest.fixture
def clock() -> Generator[FakeClock, None, None]:
    """Patch the authenticator clock to a fixed, advanceable time."""
    fake = FakeClock(T0)
    with patch("watcherclient.infrastructure.keystone_auth._utcnow", fake):
        yield fake


@pytest.fixture
def keystone() -> FakeKeystone:
    return FakeKeystone()


@pytest.fixture
def password_credential() -> Credential:
    """Username/password credential scoped to project 'demo'."""
    return Credential(
        auth_url=AUTH_URL,
        username="u",
        password="p",
        user_domain_name="Default",
        scope=Scope(project_name="demo", project_domain_name="Default"),
    )


@pytest.fixture
def make_authenticator(
    keystone: FakeKeystone, password_credential: Credential
) -> Callable[..., Authenticator]:
    """Build authenticators against the fake Keystone.

    Keyword arguments override fields of the password credential.
    """

    def _make(**overrides: Any) -> Authenticator:
        credential = password_credential.model_copy(update=overrides)
        return Authenticator(credential, identity_client=keystone.identity_client())

    return _make


@pytest.fixture
def watcher() -> FakeWatcher:
    return FakeWatcher()
