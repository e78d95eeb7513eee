"""Media relay from Plex to the browser.

One shared ``httpx.AsyncClient`` (created at startup) serves every request.
Each relay is a pipe with one chunk in flight: Starlette awaits the ASGI
``send`` for a chunk before pulling the next one from the upstream socket,
so a slow browser slows the upstream read instead of growing a buffer.
"""

from __future__ import annotations

import logging

import httpx
from fastapi.responses import StreamingResponse
from movie_trivia.plex_client import open_media_stream

from backend.api.config import Settings

logger = logging.getLogger(__name__)

# Shared client (set via init_http_client on startup)
_client: httpx.AsyncClient | None = None


def make_upstream_timeout(timeout_s: float) -> httpx.Timeout:
    """Bound connect/write/pool waits; leave body reads unbounded."""
    return httpx.Timeout(timeout_s, read=None)


def init_http_client(timeout_s: float) -> httpx.AsyncClient:
    """Create the shared upstream client."""
    global _client  # noqa: PLW0603
    _client = httpx.AsyncClient(timeout=make_upstream_timeout(timeout_s))
    return _client


async def close_http_client() -> None:
    """Close the shared upstream client, if any."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_http_client() -> httpx.AsyncClient:
    """Return the shared upstream client (FastAPI dependency)."""
    if _client is None:
        raise RuntimeError("HTTP client not initialised")
    return _client


async def stream_resource(
    client: httpx.AsyncClient,
    settings: Settings,
    resource_path: str,
    range_header: str | None,
) -> StreamingResponse:
    """Relay *resource_path* from Plex, preserving 200/206 semantics.

    Raises ``ConfigurationError`` or ``UpstreamError`` before any byte is
    sent to the client; the API layer turns those into JSON errors.
    """
    upstream = await open_media_stream(
        client,
        settings.plex_url,
        settings.plex_token,
        resource_path,
        range_header,
        token_param=settings.plex_token_param,
        timeout_s=settings.upstream_timeout_s,
    )
    return StreamingResponse(
        upstream.iter_bytes(),
        status_code=upstream.status_code,
        headers=upstream.headers,
    )
