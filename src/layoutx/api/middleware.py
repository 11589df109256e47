"""Request guards: API key authentication and input limits."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

if TYPE_CHECKING:
    from layoutx.config import Settings

_bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_from_request(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


async def verify_api_key(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> None:
    """Check the Bearer token against the configured API key.

    If no API key is configured (LAYOUTX_API_KEY not set), all requests pass.
    If configured, requests must include 'Authorization: Bearer <key>'.
    """
    settings = get_settings_from_request(request)
    if settings.api_key is None:
        return

    if credentials is None or not secrets.compare_digest(credentials.credentials.encode(), settings.api_key.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )


def enforce_input_limits(settings: Settings, source_w: int, source_h: int, command_count: int = 0) -> None:
    """Reject sources or command lists above the configured limits with 413."""
    if source_w * source_h > settings.max_source_pixels:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Source {source_w}x{source_h} exceeds the {settings.max_source_pixels} pixel limit",
        )
    if command_count > settings.max_commands:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"{command_count} commands exceeds the limit of {settings.max_commands}",
        )
