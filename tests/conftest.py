import httpx
import pytest
from fastapi.testclient import TestClient

from chatrelay.api.routes import get_upstream_client
from chatrelay.main import app

UPSTREAM_URL = "https://upstream.test/v1/stream"
UPSTREAM_KEY = "test-key"


@pytest.fixture
def upstream_env(monkeypatch):
    """Points the relay at a fake provider. Returns (url, api_key)."""
    monkeypatch.setenv("AI_API_URL", UPSTREAM_URL)
    monkeypatch.setenv("AI_API_KEY", UPSTREAM_KEY)
    return UPSTREAM_URL, UPSTREAM_KEY


@pytest.fixture
def relay_client(upstream_env):
    """Returns a factory: relay_client(handler) -> TestClient whose upstream is httpx.MockTransport(handler)."""

    def _make(handler) -> TestClient:
        upstream = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_upstream_client] = lambda: upstream
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()