"""Shared FastAPI dependencies."""

from fastapi import Depends, HTTPException, Request

from dreamlity.core import config
from dreamlity.core.config import Settings
from dreamlity.utils.rate_limiter import get_request_limiter


def get_settings() -> Settings:
    """Current application settings (overridden in tests)."""
    return config.settings


def enforce_rate_limit(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Reject clients that exceed the generation rate limit."""
    if not settings.enable_rate_limiting:
        return
    limiter = get_request_limiter(settings.request_rate_limit, settings.request_rate_window_seconds)
    client = request.client.host if request.client else "anonymous"
    if not limiter.try_acquire(client):
        raise HTTPException(status_code=429, detail="Too many requests. Please wait a minute and try again.")
