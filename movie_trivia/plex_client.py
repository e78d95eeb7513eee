"""Async client for the Plex media server.

Two jobs:

- **Media relay**: open a streamed ``GET`` for a media part, forwarding the
  browser's ``Range`` header verbatim so that seeking works.  Range syntax is
  never parsed here; Plex decides between ``200`` and ``206``.
- **Catalog**: list the movies in the first movie library section.

Every request carries the Plex token as a query parameter.  A missing token
raises :class:`~movie_trivia.errors.ConfigurationError` before any network
call is made.  Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass

import httpx

from movie_trivia.constants import (
    DEFAULT_MEDIA_TYPE,
    LIBRARY_LISTING_TIMEOUT_S,
    LIBRARY_SECTIONS_TIMEOUT_S,
    PLEX_TOKEN_PARAM,
    UPSTREAM_TIMEOUT_S,
)
from movie_trivia.errors import ConfigurationError, LibraryNotFoundError, UpstreamError

logger = logging.getLogger(__name__)

# Upstream headers copied to the client unchanged when present
_PASSTHROUGH_HEADERS = ("content-length", "content-range")


@dataclass
class MediaStream:
    """An open upstream media response, body not yet consumed.

    The body must be read exactly once via :meth:`iter_bytes`, which closes
    the upstream response when it finishes or is cancelled.
    """

    status_code: int
    headers: dict[str, str]
    _response: httpx.Response

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield raw upstream chunks in order, one at a time.

        The next chunk is only read from the socket once the consumer asks
        for it, so a slow client throttles the upstream read.
        """
        try:
            async for chunk in self._response.aiter_raw():
                yield chunk
        finally:
            await self._response.aclose()

    async def aclose(self) -> None:
        """Release the upstream connection without reading the body."""
        await self._response.aclose()


@dataclass(frozen=True)
class Movie:
    """A playable movie from the Plex library."""

    id: str
    title: str
    year: int | None
    duration: int | None
    video_path: str


def _require_token(token: str) -> None:
    if not token:
        raise ConfigurationError(
            "Plex token not configured. Set PLEX_TOKEN environment variable."
        )


def normalize_resource_path(resource_path: str) -> str:
    """Return *resource_path* with exactly one leading ``/``."""
    if not resource_path or not resource_path.strip("/"):
        raise ValueError("resource path must not be empty")
    return "/" + resource_path.lstrip("/")


def build_upstream_url(base_url: str, resource_path: str) -> str:
    """Join the Plex base URL and a resource path."""
    return base_url.rstrip("/") + normalize_resource_path(resource_path)


def relay_headers(upstream: Mapping[str, str]) -> dict[str, str]:
    """Pick the response headers forwarded to the browser.

    ``Content-Type`` falls back to ``video/mp4``; ``Content-Length`` and
    ``Content-Range`` are copied verbatim when present; ``Accept-Ranges`` is
    always ``bytes``.
    """
    lowered = {k.lower(): v for k, v in upstream.items()}
    headers = {"content-type": lowered.get("content-type") or DEFAULT_MEDIA_TYPE}
    for name in _PASSTHROUGH_HEADERS:
        value = lowered.get(name)
        if value:
            headers[name] = value
    headers["accept-ranges"] = "bytes"
    return headers


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


async def open_media_stream(
    client: httpx.AsyncClient,
    base_url: str,
    token: str,
    resource_path: str,
    range_header: str | None = None,
    *,
    token_param: str = PLEX_TOKEN_PARAM,
    timeout_s: float = UPSTREAM_TIMEOUT_S,
) -> MediaStream:
    """Issue one upstream ``GET`` for *resource_path* and return its stream.

    Args:
        client: Shared HTTP client.  Its read timeout should be disabled so
            long bodies are not cut off; *timeout_s* bounds the wait for
            the response headers instead.
        base_url: Plex server base URL.
        token: Plex token, sent as the *token_param* query parameter.
        resource_path: Media part path, with or without a leading ``/``.
        range_header: Raw ``Range`` header from the browser, if any.

    Returns:
        A :class:`MediaStream` carrying the upstream status (any status
        below 500 is passed through) and the relayed headers.

    Raises:
        ConfigurationError: *token* is empty.  No request is made.
        UpstreamError: connection failure, header timeout, or a 5xx status.
    """
    _require_token(token)
    url = build_upstream_url(base_url, resource_path)

    # Bytes are relayed raw, so Plex must not compress them
    headers = {"Accept-Encoding": "identity"}
    if range_header:
        headers["Range"] = range_header

    logger.info("Streaming media from %s (range=%s)", url, range_header or "none")
    request = client.build_request("GET", url, params={token_param: token}, headers=headers)

    try:
        response = await asyncio.wait_for(client.send(request, stream=True), timeout=timeout_s)
    except (TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("Upstream timed out after %.0fs for %s", timeout_s, url)
        raise UpstreamError(
            "Failed to stream video from Plex", f"Upstream timed out after {timeout_s:.0f}s"
        ) from exc
    except httpx.RequestError as exc:
        logger.warning("Upstream request failed for %s: %s", url, _describe(exc))
        raise UpstreamError("Failed to stream video from Plex", _describe(exc)) from exc

    logger.info("Upstream status %d for %s", response.status_code, url)
    if response.status_code >= 500:
        await response.aclose()
        raise UpstreamError(
            "Failed to stream video from Plex",
            f"Upstream returned status {response.status_code}",
        )

    return MediaStream(
        status_code=response.status_code,
        headers=relay_headers(response.headers),
        _response=response,
    )


def _movie_from_metadata(item: Mapping[str, object]) -> Movie | None:
    """Map one Plex metadata item to a :class:`Movie`, or None if unplayable."""
    media = item.get("Media")
    first_media = media[0] if isinstance(media, list) and media else {}
    parts = first_media.get("Part")
    part_key = parts[0].get("key") if isinstance(parts, list) and parts else None
    if not part_key:
        return None
    year = item.get("year")
    duration = item.get("duration")
    return Movie(
        id=str(item["ratingKey"]),
        title=str(item.get("title", "")),
        year=int(year) if year else None,  # type: ignore[call-overload]
        duration=int(duration) if duration else None,  # type: ignore[call-overload]
        video_path=str(part_key),
    )


async def list_movies(
    client: httpx.AsyncClient,
    base_url: str,
    token: str,
    *,
    token_param: str = PLEX_TOKEN_PARAM,
) -> list[Movie]:
    """Return every playable movie in the first movie library section.

    Raises:
        ConfigurationError: *token* is empty.
        LibraryNotFoundError: Plex has no section of type ``movie``.
        UpstreamError: any HTTP, network or payload error from Plex.
    """
    _require_token(token)
    base = base_url.rstrip("/")
    params = {token_param: token}
    headers = {"Accept": "application/json"}

    try:
        sections = await client.get(
            f"{base}/library/sections",
            params=params,
            headers=headers,
            timeout=LIBRARY_SECTIONS_TIMEOUT_S,
        )
        sections.raise_for_status()
        directories = sections.json()["MediaContainer"].get("Directory") or []
        library = next((d for d in directories if d.get("type") == "movie"), None)
        if library is None:
            raise LibraryNotFoundError("No movie library found in Plex")

        listing = await client.get(
            f"{base}/library/sections/{library['key']}/all",
            params=params,
            headers=headers,
            timeout=LIBRARY_LISTING_TIMEOUT_S,
        )
        listing.raise_for_status()
        metadata = listing.json()["MediaContainer"].get("Metadata") or []
        movies = [m for m in (_movie_from_metadata(item) for item in metadata) if m is not None]

    except httpx.HTTPStatusError as exc:
        logger.warning("Plex returned status %d listing movies", exc.response.status_code)
        raise UpstreamError(
            "Failed to fetch movies from Plex",
            f"Upstream returned status {exc.response.status_code}",
        ) from exc
    except httpx.RequestError as exc:
        logger.warning("Plex movie listing failed: %s", _describe(exc))
        raise UpstreamError("Failed to fetch movies from Plex", _describe(exc)) from exc
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
        logger.warning("Unexpected Plex library payload: %s", _describe(exc))
        raise UpstreamError("Failed to fetch movies from Plex", _describe(exc)) from exc

    logger.info("Found %d movies in Plex library", len(movies))
    return movies
