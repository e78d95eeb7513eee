"""Durable record slots: a named blob on disk, replaced atomically.

A slot is read whole and written whole.  Writes go to a sibling ``.tmp``
file which is fsynced and then ``os.replace``d over the slot, so a
concurrent reader sees either the previous document or the new one.
"""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import Protocol

from movie_trivia.errors import PersistenceError

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Whole-document storage used by the leaderboard."""

    def read(self) -> bytes | None:
        """Return the stored bytes, or None if nothing was ever written."""
        ...

    def write(self, data: bytes) -> None:
        """Replace the stored bytes."""
        ...


class FileRecordStore:
    """A :class:`RecordStore` backed by a single file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _tmp_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".tmp")

    def read(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("Failed to read %s", self.path, exc_info=True)
            raise PersistenceError(f"Failed to read {self.path.name}") from exc

    def write(self, data: bytes) -> None:
        tmp = self._tmp_path()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as exc:
            logger.error("Failed to write %s", self.path, exc_info=True)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write {self.path.name}") from exc
