"""
Shared fixtures: the app with an in-memory URL store and a fake upstream
"""
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from urlconnect.api.proxy import get_upstream_fetcher
from urlconnect.main import app
from urlconnect.services.upstream_fetcher import UpstreamFetcher
from urlconnect.services.url_store import MemoryUrlStore, get_url_store


class FakeUpstream:
    """httpx.MockTransport handler that records every outbound request"""

    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200,
            headers={"Content-Type": "text/plain"},
            content=b"ok",
        )

    def respond_with(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.handler(request)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def url_store() -> MemoryUrlStore:
    return MemoryUrlStore()


@pytest.fixture
def fetcher(upstream) -> UpstreamFetcher:
    return UpstreamFetcher(timeout=5.0, transport=httpx.MockTransport(upstream))


@pytest.fixture
def overrides(fetcher, url_store):
    app.dependency_overrides[get_upstream_fetcher] = lambda: fetcher
    app.dependency_overrides[get_url_store] = lambda: url_store
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
def client(overrides):
    with TestClient(app) as c:
        yield c
