"""Pytest bootstrap configuration.

Keep any real V2EX token in the developer's environment out of the test run,
and provide a fake V2EX host built on httpx.MockTransport so no test touches
the network.
"""
import os

import httpx
import pytest

os.environ.pop("V2EX_TOKEN", None)

from core.config import Settings, get_settings
from infrastructure.external.api_clients import V2exClient


RATE_HEADERS = {
    "X-Rate-Limit-Limit": "600",
    "X-Rate-Limit-Remaining": "599",
    "X-Rate-Limit-Reset": "1700000000",
}


class FakeV2ex:
    """Routes (method, path) to canned responses and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], object] = {}

    def add(self, method, path, status=200, json=None, content=None, headers=None):
        if content is None and json is not None:
            response = {"status_code": status, "json": json}
        else:
            response = {"status_code": status, "content": content or b""}
        response["headers"] = {**RATE_HEADERS, **(headers or {})}
        self._routes[(method, path)] = response

    def add_error(self, method, path, exc_type=httpx.ConnectError):
        self._routes[(method, path)] = exc_type

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(
                404,
                json={"success": False, "message": "Object Not Found"},
                headers=RATE_HEADERS,
            )
        if isinstance(route, type):
            raise route("connection refused", request=request)
        return httpx.Response(**route)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.delenv("V2EX_TOKEN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def fake_api():
    return FakeV2ex()


@pytest.fixture
def make_client(fake_api, settings):
    def _make(token="test-token", **kwargs):
        kwargs.setdefault("settings", settings)
        return V2exClient(token=token, transport=httpx.MockTransport(fake_api.handler), **kwargs)
    return _make
