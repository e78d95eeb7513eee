"""Test fixtures for the backend test suite."""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from backend.api.config import Settings
from backend.api.dependencies import get_settings
from backend.api.main import app
from backend.api.services.leaderboard_store import LeaderboardStore, get_leaderboard_store
from backend.api.services.media_proxy import get_http_client
from backend.api.services.record_store import FileRecordStore

PLEX_URL = "http://plex.test:32400"
PLEX_TOKEN = "test-token-1234567890"


class UpstreamBody(httpx.AsyncByteStream):
    """A response body read lazily in chunks, as from a socket.

    Responses built with ``content=`` are read eagerly by httpx, which
    leaves nothing for a streaming relay to pull.
    """

    def __init__(self, data: bytes, chunk_size: int = 64 * 1024) -> None:
        self._data = data
        self._chunk_size = chunk_size

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for start in range(0, len(self._data), self._chunk_size):
            yield self._data[start : start + self._chunk_size]


def streamed_response(
    status: int, body: bytes = b"", headers: dict[str, str] | None = None
) -> httpx.Response:
    """An upstream response whose body is streamed through :class:`UpstreamBody`."""
    return httpx.Response(status, headers=headers, stream=UpstreamBody(body))


class FakePlex:
    """Stand-in for the Plex server behind ``httpx.MockTransport``.

    Records every request and answers with :attr:`handler`, which tests
    replace to script the upstream behaviour.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda r: streamed_response(200)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a fake Plex and a per-test data directory."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        plex_url=PLEX_URL,
        plex_token=PLEX_TOKEN,
        leaderboard_data_dir=str(tmp_path),
    )


@pytest.fixture
def fake_plex() -> FakePlex:
    return FakePlex()


@pytest.fixture
def leaderboard_path(tmp_path: Path) -> Path:
    return tmp_path / "leaderboard.json"


@pytest.fixture
def leaderboard_store(leaderboard_path: Path) -> LeaderboardStore:
    return LeaderboardStore(FileRecordStore(leaderboard_path))


@pytest_asyncio.fixture
async def client(
    settings: Settings,
    fake_plex: FakePlex,
    leaderboard_store: LeaderboardStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an async HTTP test client wired to the FastAPI app.

    Settings, the upstream HTTP client and the leaderboard store are all
    overridden so nothing touches the network or the real data directory.
    """
    upstream = httpx.AsyncClient(transport=httpx.MockTransport(fake_plex))
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = lambda: upstream
    app.dependency_overrides[get_leaderboard_store] = lambda: leaderboard_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await upstream.aclose()
