"""Leaderboard ranking: composite scoring, deterministic ordering, capacity.

A finished quiz run is turned into a :class:`ScoreRecord` whose composite
score rewards correct answers first and speed second::

    composite = score * 100 - floor(total_time / 10)

Records are ranked by composite score (desc), then correct answers (desc),
then total time (asc).  Python's sort is stable, so records that tie on all
three keys keep their insertion order.  Only the top
:data:`~movie_trivia.constants.LEADERBOARD_CAPACITY` records are kept.

Everything here is pure; persistence and locking live in
``backend.api.services.leaderboard_store``.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import UTC, datetime

from movie_trivia.constants import (
    LEADERBOARD_CAPACITY,
    MAX_NAME_LENGTH,
    POINTS_PER_CORRECT,
    SECONDS_PER_PENALTY_POINT,
)
from movie_trivia.errors import SubmissionValidationError

# Difficulty and timer are opaque labels chosen by the client
Label = str | int | float


@dataclass(frozen=True)
class RunResult:
    """A validated game result, ready to be scored."""

    name: str
    score: int
    difficulty: Label
    timer: Label
    total_time: float


@dataclass(frozen=True)
class ScoreRecord:
    """A single leaderboard entry as persisted."""

    name: str
    score: int
    difficulty: Label
    timer: Label
    total_time: int
    composite_score: int
    date: str

    def to_dict(self) -> dict[str, object]:
        """Serialize using the on-disk / wire key names."""
        return {
            "name": self.name,
            "score": self.score,
            "difficulty": self.difficulty,
            "timer": self.timer,
            "totalTime": self.total_time,
            "compositeScore": self.composite_score,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, d: dict[str, object]) -> ScoreRecord:
        """Rebuild a record from its stored form.

        The stored composite score is taken as-is, never recomputed.
        """
        return cls(
            name=str(d["name"]),
            score=int(d["score"]),  # type: ignore[call-overload]
            difficulty=d["difficulty"],  # type: ignore[arg-type]
            timer=d["timer"],  # type: ignore[arg-type]
            total_time=int(d["totalTime"]),  # type: ignore[call-overload]
            composite_score=int(d["compositeScore"]),  # type: ignore[call-overload]
            date=str(d["date"]),
        )


def compute_composite_score(score: int, total_time: float) -> int:
    """Return ``score * 100 - floor(total_time / 10)``.

    *total_time* is floored first.  For non-negative times this gives the
    same result as flooring the quotient, so recomputing from the stored
    (floored) time always reproduces the stored composite score.
    """
    whole_seconds = math.floor(total_time)
    return score * POINTS_PER_CORRECT - whole_seconds // SECONDS_PER_PENALTY_POINT


def validate_submission(
    name: str | None,
    score: int | None,
    difficulty: Label | None,
    timer: Label | None,
    total_time: float | None,
) -> RunResult:
    """Check a raw submission and return a :class:`RunResult`.

    Raises:
        SubmissionValidationError: if the trimmed name is empty, any other
            field is ``None``, the time is not finite, or the score or
            time is negative.
    """
    missing = [
        field
        for field, value in (
            ("score", score),
            ("difficulty", difficulty),
            ("timer", timer),
            ("totalTime", total_time),
        )
        if value is None
    ]
    trimmed = name.strip() if isinstance(name, str) else ""
    if not trimmed:
        missing.insert(0, "name")
    if missing:
        raise SubmissionValidationError(f"Missing required fields: {', '.join(missing)}")

    assert score is not None and total_time is not None
    assert difficulty is not None and timer is not None
    if not math.isfinite(total_time):
        raise SubmissionValidationError("totalTime must be a finite number")
    if score < 0:
        raise SubmissionValidationError("score must be non-negative")
    if total_time < 0:
        raise SubmissionValidationError("totalTime must be non-negative")

    return RunResult(
        name=trimmed[:MAX_NAME_LENGTH],
        score=score,
        difficulty=difficulty,
        timer=timer,
        total_time=total_time,
    )


def _utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(UTC)
    stamp = now.astimezone(UTC).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def make_record(run: RunResult, now: datetime | None = None) -> ScoreRecord:
    """Score *run* and stamp it with the write time."""
    return ScoreRecord(
        name=run.name,
        score=run.score,
        difficulty=run.difficulty,
        timer=run.timer,
        total_time=math.floor(run.total_time),
        composite_score=compute_composite_score(run.score, run.total_time),
        date=_utc_timestamp(now),
    )


def rank_key(record: ScoreRecord) -> tuple[int, int, int]:
    """Sort key: composite desc, correct answers desc, total time asc."""
    return (-record.composite_score, -record.score, record.total_time)


def merge_record(
    existing: list[ScoreRecord],
    record: ScoreRecord,
    capacity: int = LEADERBOARD_CAPACITY,
) -> list[ScoreRecord]:
    """Append *record*, rank everything, and keep the top *capacity* entries.

    *existing* is not modified.
    """
    ranked = sorted([*existing, record], key=rank_key)
    return ranked[:capacity]


def encode_leaderboard(records: list[ScoreRecord]) -> bytes:
    """Serialize records to the JSON document stored on disk."""
    return json.dumps([r.to_dict() for r in records], indent=2).encode("utf-8")


def decode_leaderboard(raw: bytes) -> list[ScoreRecord]:
    """Parse a stored JSON document back into records.

    Raises ``ValueError`` (including ``json.JSONDecodeError``), ``KeyError``
    or ``TypeError`` when the document is malformed.
    """
    data = json.loads(raw.decode("utf-8"))
    if not isinstance(data, list):
        raise ValueError("leaderboard document must be a JSON list")
    return [ScoreRecord.from_dict(item) for item in data]
