from __future__ import annotations

from collections.abc import Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import create_app

SERVICE_ENDPOINT = "https://generator.example.com/generate-content"
SERVICE_BASE = "https://generator.example.com"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _studio_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("CONTENTSTUDIO_ENVIRONMENT", "test")
    monkeypatch.setenv("CONTENTSTUDIO_SERVICE_ENDPOINT", SERVICE_ENDPOINT)
    monkeypatch.setenv("CONTENTSTUDIO_RATE_LIMIT", "1000/minute")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class ServiceStub:
    """Programmable stand-in for the remote generation service."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Handler = lambda request: httpx.Response(
            200,
            json={"url": "https://example.com/post", "content_type": "blog", "content": "Hello"},
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def service() -> ServiceStub:
    return ServiceStub()


@pytest.fixture
def client(service: ServiceStub) -> Iterator[TestClient]:
    app = create_app(transport=httpx.MockTransport(service))
    with TestClient(app) as test_client:
        yield test_client
