"""In-process fakes for Keystone and the clock."""

import json
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from watcherclient.infrastructure.identity import KeystoneIdentityClient

AUTH_URL = "https://keystone.example/v3"
WATCHER_URL = "https://watcher.example:9322"
T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def default_catalog(watcher_url: str = WATCHER_URL) -> list[dict[str, Any]]:
    """Service catalog with identity and infra-optim entries."""
    return [
        {
            "type": "identity",
            "name": "keystone",
            "endpoints": [
                {"interface": "public", "region": "RegionOne", "url": AUTH_URL},
            ],
        },
        {
            "type": "infra-optim",
            "name": "watcher",
            "endpoints": [
                {
                    "interface": "public",
                    "region": "RegionOne",
                    "region_id": "RegionOne",
                    "url": watcher_url,
                },
                {
                    "interface": "internal",
                    "region": "RegionOne",
                    "region_id": "RegionOne",
                    "url": "http://watcher.internal:9322",
                },
                {
                    "interface": "public",
                    "region": "RegionTwo",
                    "region_id": "RegionTwo",
                    "url": "https://watcher.region-two.example",
                },
            ],
        },
    ]


class FakeClock:
    """Controllable replacement for the authenticator's notion of now."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeKeystone:
    """Keystone v3 stand-in served through httpx.MockTransport.

    Tokens are issued from a queue; when it runs dry, tokens named
    "tok-<n>" expiring at default_expires_at are generated.
    """

    def __init__(self) -> None:
        self.catalog = default_catalog()
        self.default_expires_at: datetime | None = T0 + timedelta(hours=1)
        self.reject = False
        self.introspection_fails = False
        # Replace the JSON body of issue or introspection responses when set
        self.issue_body: Any = None
        self.introspection_body: Any = None
        self.issue_delay = 0.0
        self.issue_calls = 0
        self.introspect_calls = 0
        self.auth_bodies: list[dict[str, Any]] = []
        self._queue: list[tuple[str, datetime | None]] = []
        self._expiries: dict[str, datetime | None] = {}
        self._lock = threading.Lock()

    def queue_token(self, token: str, expires_at: datetime | None) -> None:
        self._queue.append((token, expires_at))

    @property
    def total_calls(self) -> int:
        return self.issue_calls + self.introspect_calls

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path != "/v3/auth/tokens":
            return httpx.Response(404)
        if request.method == "POST":
            return self._issue(request)
        if request.method == "GET":
            return self._introspect(request)
        return httpx.Response(405)

    def _issue(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.issue_calls += 1
            self.auth_bodies.append(json.loads(request.content))
            if self.reject:
                return httpx.Response(401, json={"error": {"message": "authentication required"}})
            if self._queue:
                token, expires_at = self._queue.pop(0)
            else:
                token, expires_at = f"tok-{self.issue_calls}", self.default_expires_at
            self._expiries[token] = expires_at

        if self.issue_delay:
            time.sleep(self.issue_delay)

        body = self.issue_body
        if body is None:
            body = {"token": {"methods": ["password"], "catalog": self.catalog}}
        return httpx.Response(201, headers={"X-Subject-Token": token}, json=body)

    def _introspect(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.introspect_calls += 1
            subject = request.headers.get("X-Subject-Token", "")
            expires_at = self._expiries.get(subject)
        if self.introspection_body is not None:
            return httpx.Response(200, json=self.introspection_body)
        if self.introspection_fails or expires_at is None:
            return httpx.Response(404, json={"error": {"message": "token not found"}})
        return httpx.Response(
            200,
            json={"token": {"expires_at": expires_at.strftime("%Y-%m-%dT%H:%M:%S.000000Z")}},
        )

    def identity_client(self) -> KeystoneIdentityClient:
        http = httpx.Client(transport=httpx.MockTransport(self.handler))
        return KeystoneIdentityClient(AUTH_URL, http_client=http)


class FakeWatcher:
    """Watcher API stand-in that replays queued responses.

    Every request is recorded. When the queue is empty a 200 with an
    empty JSON object is returned.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | tuple[type[httpx.TransportError], str]] = []

    def queue(self, status: int = 200, json_body: Any = None, **kwargs: Any) -> None:
        if json_body is not None:
            kwargs["json"] = json_body
        self._responses.append(httpx.Response(status, **kwargs))

    def queue_error(self, error_class: type[httpx.TransportError], message: str) -> None:
        self._responses.append((error_class, message))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(200, json={})
        response = self._responses.pop(0)
        if isinstance(response, tuple):
            error_class, message = response
            raise error_class(message, request=request)
        return response

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    @property
    def tokens(self) -> list[str | None]:
        return [r.headers.get("X-Auth-Token") for r in self.requests]

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)
