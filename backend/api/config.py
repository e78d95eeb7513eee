"""Application settings via pydantic-settings."""

from __future__ import annotations

import json

from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_cors_origins(raw: str) -> list[str]:
    """Parse a CORS origins string, tolerating non-JSON formats.

    Some deploy CLIs strip inner quotes, turning valid JSON like
    ``["https://a.com"]`` into ``[https://a.com]``.  This handles:
    - Valid JSON arrays: ``["https://a.com","https://b.com"]``
    - Bracketed non-JSON: ``[https://a.com,https://b.com]``
    - Comma-separated: ``https://a.com,https://b.com``
    """
    # Try JSON first
    try:
        parsed = json.loads(raw)
        if isinstance(parsed, list):
            return [str(x) for x in parsed]
    except (json.JSONDecodeError, ValueError):
        pass

    # Strip brackets and split on commas
    stripped = raw.strip("[] ")
    return [s.strip().strip('"').strip("'") for s in stripped.split(",") if s.strip()]


class Settings(BaseSettings):
    """Movie trivia API configuration.

    Values are loaded from environment variables, falling back to a ``.env``
    file in the project root.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Plex upstream
    plex_url: str = "http://localhost:32400"
    plex_token: str = ""
    plex_token_param: str = "X-Plex-Token"

    # Bounds connect + response headers; the body itself has no timeout
    upstream_timeout_s: float = 30.0

    # File storage
    leaderboard_data_dir: str = "data"

    # CORS: stored as a raw string to avoid pydantic-settings' strict JSON
    # parsing of list types.
    cors_origins_raw: str = '["http://localhost:3001"]'

    # Server
    port: int = 3001

    # Debug mode
    debug: bool = False

    @property
    def plex_configured(self) -> bool:
        """True when a Plex token is available."""
        return bool(self.plex_token)

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from the raw string."""
        return _parse_cors_origins(self.cors_origins_raw)
