"""Pydantic schemas for the movie catalog endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MovieSchema(BaseModel):
    """A playable movie and the media path to stream it from."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    year: int | None = None
    duration: int | None = Field(None, description="Runtime in milliseconds")
    video_path: str = Field(alias="videoPath")


class MovieListResponse(BaseModel):
    """Response for the movie catalog."""

    movies: list[MovieSchema]
