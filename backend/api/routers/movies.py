"""Movie catalog endpoint."""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import APIRouter, Depends
from movie_trivia.plex_client import list_movies

from backend.api.config import Settings
from backend.api.dependencies import get_settings
from backend.api.schemas.movies import MovieListResponse, MovieSchema
from backend.api.services.media_proxy import get_http_client

router = APIRouter()


@router.get("", response_model=MovieListResponse)
async def get_movies(
    settings: Annotated[Settings, Depends(get_settings)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> MovieListResponse:
    """List playable movies from the Plex movie library."""
    movies = await list_movies(
        client,
        settings.plex_url,
        settings.plex_token,
        token_param=settings.plex_token_param,
    )
    return MovieListResponse(
        movies=[
            MovieSchema(
                id=m.id,
                title=m.title,
                year=m.year,
                duration=m.duration,
                video_path=m.video_path,
            )
            for m in movies
        ]
    )
