"""Leaderboard endpoints: read the board and submit a finished run."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from movie_trivia.leaderboard import ScoreRecord

from backend.api.schemas.leaderboard import LeaderboardEntry, ScoreSubmission, SubmitResponse
from backend.api.services.leaderboard_store import LeaderboardStore, get_leaderboard_store

router = APIRouter()


def _to_entry(record: ScoreRecord) -> LeaderboardEntry:
    return LeaderboardEntry.model_validate(record.to_dict())


@router.get("", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    store: Annotated[LeaderboardStore, Depends(get_leaderboard_store)],
) -> list[LeaderboardEntry]:
    """Return the ranked leaderboard (empty list if nothing submitted yet)."""
    records = await store.retrieve()
    return [_to_entry(r) for r in records]


@router.post("", response_model=SubmitResponse)
async def submit_score(
    body: ScoreSubmission,
    store: Annotated[LeaderboardStore, Depends(get_leaderboard_store)],
) -> SubmitResponse:
    """Score a finished run, merge it into the board, and return the board."""
    records = await store.submit(
        name=body.name,
        score=body.score,
        difficulty=body.difficulty,
        timer=body.timer,
        total_time=body.total_time,
    )
    return SubmitResponse(leaderboard=[_to_entry(r) for r in records])
