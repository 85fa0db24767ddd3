"""
Test configuration and fixtures.

Provides:
- Settings pointing at a temporary directory (SQLite and JSON backends)
- The FastAPI app with a mock outbound transport
- HTTPX AsyncClient bound to the app
"""
from typing import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from vibeforms.app import create_app
from vibeforms.config import Settings


class RecordingTransport(httpx.MockTransport):
    """Outbound transport that records every request and answers 200."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json={"ok": True})


@pytest.fixture(params=["sqlite", "json"])
def settings(request, tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("STORAGE_BACKEND", request.param)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "app.db"))
    monkeypatch.setenv("JSON_PATH", str(tmp_path / "jsonstore.json"))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("AUTH_MODE", "header")
    monkeypatch.setenv("RESEND_API_KEY", "")
    return Settings()


@pytest.fixture
def outbound() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def app(settings, outbound):
    application = create_app(settings, transport=outbound)
    yield application
    application.state.storage.close()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": "owner-1"},
    ) as ac:
        yield ac
