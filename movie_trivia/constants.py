"""Shared constants for the movie trivia engine."""

from __future__ import annotations

# Leaderboard
LEADERBOARD_CAPACITY: int = 20
MAX_NAME_LENGTH: int = 20
POINTS_PER_CORRECT: int = 100
SECONDS_PER_PENALTY_POINT: int = 10

# Media relay
DEFAULT_MEDIA_TYPE: str = "video/mp4"
PLEX_TOKEN_PARAM: str = "X-Plex-Token"
UPSTREAM_TIMEOUT_S: float = 30.0
LIBRARY_SECTIONS_TIMEOUT_S: float = 10.0
LIBRARY_LISTING_TIMEOUT_S: float = 30.0
