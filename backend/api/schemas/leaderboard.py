"""Pydantic schemas for the leaderboard endpoints.

Field names on the wire are camelCase (``totalTime``, ``compositeScore``)
to match the game front end.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ScoreSubmission(BaseModel):
    """Request body for submitting a finished run.

    Fields are optional here so that missing values reach the leaderboard
    engine, which rejects them with a single validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    score: int | None = Field(None, description="Number of correct answers")
    difficulty: str | None = None
    timer: int | float | str | None = Field(None, description="Per-round timer label")
    total_time: float | None = Field(None, alias="totalTime", description="Seconds taken")


class LeaderboardEntry(BaseModel):
    """A single ranked leaderboard entry."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    score: int
    difficulty: int | float | str
    timer: int | float | str
    total_time: int = Field(alias="totalTime")
    composite_score: int = Field(alias="compositeScore")
    date: str


class SubmitResponse(BaseModel):
    """Response after a successful submission: the whole updated board."""

    success: bool = True
    leaderboard: list[LeaderboardEntry]
