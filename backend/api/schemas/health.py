"""Pydantic schema for the health endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Liveness check; reports Plex configuration without contacting Plex."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    plex_configured: bool = Field(alias="plexConfigured")
    plex_url: str = Field(alias="plexUrl")
