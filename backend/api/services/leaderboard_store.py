"""Persisted leaderboard with serialized read-merge-write.

The leaderboard is one JSON document in a :class:`RecordStore` slot.  All
access goes through a single :class:`LeaderboardStore` whose lock covers the
whole load, merge, truncate and write sequence, so two concurrent
submissions can never both start from the same prior state.  File I/O runs
in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from movie_trivia.constants import LEADERBOARD_CAPACITY
from movie_trivia.errors import PersistenceError
from movie_trivia.leaderboard import (
    Label,
    ScoreRecord,
    decode_leaderboard,
    encode_leaderboard,
    make_record,
    merge_record,
    validate_submission,
)

from backend.api.services.record_store import FileRecordStore, RecordStore

logger = logging.getLogger(__name__)

LEADERBOARD_FILENAME = "leaderboard.json"


class LeaderboardStore:
    """Owner of the persisted, capacity-bounded leaderboard."""

    def __init__(self, slot: RecordStore, capacity: int = LEADERBOARD_CAPACITY) -> None:
        self._slot = slot
        self._capacity = capacity
        self._lock = asyncio.Lock()

    async def _load(self) -> list[ScoreRecord]:
        raw = await asyncio.to_thread(self._slot.read)
        if raw is None:
            return []
        try:
            return decode_leaderboard(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.error("Stored leaderboard is corrupt", exc_info=True)
            raise PersistenceError("Stored leaderboard is corrupt") from exc

    async def retrieve(self) -> list[ScoreRecord]:
        """Return the persisted leaderboard, empty if nothing is stored yet."""
        return await self._load()

    async def submit(
        self,
        name: str | None,
        score: int | None,
        difficulty: Label | None,
        timer: Label | None,
        total_time: float | None,
    ) -> list[ScoreRecord]:
        """Validate, score and merge a run, then persist the new top list.

        Validation happens before the store is touched, so a rejected
        submission leaves the persisted document unchanged.

        Returns:
            The full ranked leaderboard after the merge.

        Raises:
            SubmissionValidationError: a field is missing or invalid.
            PersistenceError: the slot could not be read or written.  The
                submission must be treated as not saved.
        """
        run = validate_submission(name, score, difficulty, timer, total_time)

        async with self._lock:
            existing = await self._load()
            record = make_record(run)
            ranked = merge_record(existing, record, self._capacity)
            await asyncio.to_thread(self._slot.write, encode_leaderboard(ranked))

        logger.info(
            "Score saved for %s: composite=%d (%d entries)",
            record.name,
            record.composite_score,
            len(ranked),
        )
        return ranked


# Process-wide instance (set via init_leaderboard_store on startup)
_store: LeaderboardStore | None = None


def init_leaderboard_store(data_dir: str) -> LeaderboardStore:
    """Create the leaderboard store under *data_dir*.

    The directory is created on first write, not here.
    """
    global _store  # noqa: PLW0603
    _store = LeaderboardStore(FileRecordStore(Path(data_dir) / LEADERBOARD_FILENAME))
    return _store


def get_leaderboard_store() -> LeaderboardStore:
    """Return the process-wide leaderboard store (FastAPI dependency)."""
    if _store is None:
        raise RuntimeError("Leaderboard store not initialised")
    return _store
