"""Dependency injection for API handlers."""

from typing import Annotated

from fastapi import Depends, Request

from azrelay.config import Settings, get_settings
from azrelay.core.backend import BackendClient


def get_settings_dependency(request: Request) -> Settings:
    """Get application settings.

    Uses the settings the application was created with, falling back to
    the cached global settings. Override this dependency in tests.
    """
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = get_settings()
    return settings


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


def get_backend_client(settings: SettingsDep) -> BackendClient:
    """Get a client for the configured chat-completions backend."""
    return BackendClient(settings)


BackendClientDep = Annotated[BackendClient, Depends(get_backend_client)]


def get_request_id(request: Request) -> str | None:
    """Extract request ID from request state.

    The request ID is set by the request ID middleware.
    """
    return getattr(request.state, "request_id", None)


RequestIdDep = Annotated[str | None, Depends(get_request_id)]
