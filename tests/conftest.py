# ABOUTME: Shared fixtures: an in-memory MediaWiki served through httpx.MockTransport and a manual clock
# ABOUTME: The fake wiki records every API request so tests can count upstream fetches

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from wiki_navigator.core.service import WikiContentService
from wiki_navigator.lib.cache import TTLCache
from wiki_navigator.wiki.client import MediaWikiClient

WIKI_URL = "https://wiki.test"

Payload = dict[str, Any] | Callable[[dict[str, str]], dict[str, Any]]


class ManualClock:
    """Monotonic clock advanced explicitly by tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWiki:
    """Minimal MediaWiki API answering from registered routes.

    Routes match on a subset of query parameters and are tried in registration order.
    Endpoint checks (requests without ``formatversion``) are answered but not recorded.
    Unmatched API requests get a ``missingtitle`` error envelope.
    """

    def __init__(self, api_path: str = "/api.php"):
        self.api_path = api_path
        self.routes: list[tuple[dict[str, str], Payload]] = []
        self.requests: list[dict[str, str]] = []
        self.discovery_paths: list[str] = []

    def route(self, payload: Payload, **params: Any) -> None:
        self.routes.append(({key: str(value) for key, value in params.items()}, payload))

    def handler(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        if "formatversion" not in params:
            self.discovery_paths.append(request.url.path)
            status = 200 if request.url.path == self.api_path else 404
            return httpx.Response(status, json={"batchcomplete": True})

        if request.url.path != self.api_path:
            return httpx.Response(404, text="not found")

        self.requests.append(params)
        for expected, payload in self.routes:
            if all(params.get(key) == value for key, value in expected.items()):
                body = payload(params) if callable(payload) else payload
                return httpx.Response(200, json=body)

        return httpx.Response(
            200, json={"error": {"code": "missingtitle", "info": "The page you specified doesn't exist."}}
        )

    def count(self, **params: Any) -> int:
        expected = {key: str(value) for key, value in params.items()}
        return sum(1 for request in self.requests if all(request.get(k) == v for k, v in expected.items()))


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_wiki() -> FakeWiki:
    return FakeWiki()


@pytest.fixture
def wiki_client(fake_wiki: FakeWiki) -> MediaWikiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_wiki.handler))
    return MediaWikiClient(client=http_client, rate_limit=1000.0, timeout=5.0)


@pytest.fixture
def service(wiki_client: MediaWikiClient, clock: ManualClock) -> WikiContentService:
    return WikiContentService(wiki_client, TTLCache(clock=clock))
