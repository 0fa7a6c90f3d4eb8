"""
Shared test fixtures.

No test talks to a real backend: BackendClient is given a FakeHttpSession
that answers from a route table keyed by (method, path).
"""

import json
from typing import Any, NamedTuple

import pytest
from tenacity import wait_none

from gigledger.services.backend import BackendClient
from gigledger.services.session import InMemorySessionStore, SessionContext, SessionStoreError


BASE_URL = "http://backend.test/api"


class FakeResponse:
    """The subset of requests.Response that BackendClient reads."""

    def __init__(self, status_code: int = 200, payload: Any = None, content: bytes = None, reason: str = "OK"):
        self.status_code = status_code
        self.reason = reason
        if content is None:
            content = json.dumps(payload).encode("utf-8") if payload is not None else b""
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.content)


class Call(NamedTuple):
    method: str
    path: str
    kwargs: dict


class FakeHttpSession:
    """
    Stands in for requests.Session.

    A route may be a FakeResponse, an exception instance (raised on every
    call), a list (answered in order, the last one repeats) or a callable
    taking (method, path, kwargs).
    """

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[Call] = []

    def route(self, method: str, path: str, handler) -> None:
        self.routes[(method, path)] = handler

    def calls_to(self, method: str, path: str) -> list[Call]:
        return [c for c in self.calls if c.method == method and c.path == path]

    def request(self, method, url, timeout=None, **kwargs):
        path = url[len(self.base_url):]
        self.calls.append(Call(method, path, kwargs))
        handler = self.routes.get((method, path))
        if handler is None:
            return FakeResponse(404, {"message": f"No route {method} {path}"}, reason="Not Found")
        if isinstance(handler, list):
            handler = handler.pop(0) if len(handler) > 1 else handler[0]
        if isinstance(handler, Exception):
            raise handler
        if callable(handler) and not isinstance(handler, FakeResponse):
            handler = handler(method, path, kwargs)
        return handler

    def close(self):
        pass


class ReadOnlySessionStore(InMemorySessionStore):
    """Loads normally but every write fails, like a read-only disk."""

    def save(self, data: dict) -> None:
        raise SessionStoreError("disk is read-only")

    def clear(self) -> None:
        raise SessionStoreError("disk is read-only")


@pytest.fixture
def http():
    return FakeHttpSession()


@pytest.fixture
def session_context():
    return SessionContext(InMemorySessionStore({
        "token": "test-token",
        "userId": "u1",
        "user": {"_id": "u1", "username": "maya", "email": "maya@example.com"},
        "username": "maya",
    }))


@pytest.fixture
def client(http, session_context):
    return BackendClient(
        token_provider=lambda: session_context.token,
        http_session=http,
        base_url=BASE_URL,
        timeout=1,
        max_retries=3,
        retry_wait=wait_none(),
    )
