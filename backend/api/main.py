"""FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from movie_trivia.errors import (
    ConfigurationError,
    LibraryNotFoundError,
    PersistenceError,
    SubmissionValidationError,
    UpstreamError,
)
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from backend.api.config import Settings
from backend.api.dependencies import get_settings
from backend.api.routers import leaderboard, media, movies
from backend.api.schemas.health import HealthResponse
from backend.api.services.leaderboard_store import init_leaderboard_store
from backend.api.services.media_proxy import close_http_client, init_http_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    logging.basicConfig(level=logging.INFO)

    init_http_client(settings.upstream_timeout_s)
    init_leaderboard_store(settings.leaderboard_data_dir)
    logger.info("Plex URL: %s", settings.plex_url)
    logger.info("Plex token: %s", "configured" if settings.plex_configured else "NOT configured")

    yield

    await close_http_client()


load_dotenv()  # Populate os.environ from .env before reading settings
settings = Settings()

app = FastAPI(
    title="Movie Trivia API",
    description="Plex media relay and leaderboard for the movie trivia game",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)


# -- Cache-Control middleware --------------------------------------------------

# Route prefix -> Cache-Control header value
_CACHE_RULES: list[tuple[str, str]] = [
    # Media bytes are relayed, never cached
    ("/api/media", "no-store"),
    # Leaderboard changes on every submission
    ("/api/leaderboard", "no-store"),
    # Library contents change rarely
    ("/api/movies", "max-age=300"),
    # Legacy /api/plex paths used by the game front end
    ("/api/plex/video", "no-store"),
    ("/api/plex/movies", "max-age=300"),
]


class CacheControlMiddleware(BaseHTTPMiddleware):
    """Set Cache-Control headers based on the request path and method."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        # Only apply to successful GET responses without an existing header
        if request.method != "GET" or response.status_code >= 400:
            return response
        if "cache-control" in response.headers:
            return response

        path = request.url.path
        for prefix, value in _CACHE_RULES:
            if path.startswith(prefix):
                response.headers["Cache-Control"] = value
                break
        else:
            # Default: no-cache for any unmatched GET
            response.headers["Cache-Control"] = "no-cache"

        return response


# -- Exception handlers --------------------------------------------------------


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unhandled exceptions.

    Logs the full traceback server-side but returns a safe generic message
    to the client (no internal details leaked).
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Return 422 for ValueError (bad input data that passed validation)."""
    logger.warning("ValueError on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Return 400 when the server is missing required configuration."""
    logger.warning("Configuration error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(SubmissionValidationError)
async def submission_error_handler(
    request: Request, exc: SubmissionValidationError
) -> JSONResponse:
    """Return 400 for a rejected leaderboard submission."""
    logger.warning("Rejected submission: %s", exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(LibraryNotFoundError)
async def library_not_found_handler(request: Request, exc: LibraryNotFoundError) -> JSONResponse:
    """Return 404 when Plex has no movie library."""
    logger.warning("%s", exc)
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Return 502 with a generic message plus diagnostic detail."""
    logger.error(
        "Upstream error on %s %s: %s (%s)", request.method, request.url.path, exc, exc.detail
    )
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "details": exc.detail},
    )


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Return 500; a submission that hits this must be treated as not saved."""
    logger.error("Persistence error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# -- Middleware (order matters: last added = first executed) ------------------

app.add_middleware(CacheControlMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "Content-Length", "Accept-Ranges"],
)

# -- Routers -----------------------------------------------------------------

app.include_router(media.router, prefix="/api/media", tags=["media"])
app.include_router(movies.router, prefix="/api/movies", tags=["movies"])
app.include_router(leaderboard.router, prefix="/api/leaderboard", tags=["leaderboard"])

# Legacy /api/plex paths used by the game front end
app.include_router(media.router, prefix="/api/plex/video", include_in_schema=False)
app.include_router(movies.router, prefix="/api/plex/movies", include_in_schema=False)


# -- Health ------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
@app.get("/api/health", response_model=HealthResponse)
async def health_check(
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Report liveness and whether a Plex token is configured."""
    return HealthResponse(
        plex_configured=app_settings.plex_configured,
        plex_url=app_settings.plex_url,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend.api.main:app", host="0.0.0.0", port=settings.port)
