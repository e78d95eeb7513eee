"""Media streaming endpoint: byte-range-aware relay from Plex."""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, Header
from fastapi.responses import StreamingResponse

from backend.api.config import Settings
from backend.api.dependencies import get_settings
from backend.api.services.media_proxy import get_http_client, stream_resource

router = APIRouter()


@router.get("/{resource_path:path}", response_class=StreamingResponse)
async def stream_media(
    resource_path: str,
    settings: Annotated[Settings, Depends(get_settings)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    range_header: Annotated[str | None, Header(alias="Range")] = None,
) -> StreamingResponse:
    """Stream a Plex media part, honouring the browser's ``Range`` header."""
    return await stream_resource(client, settings, resource_path, range_header)
