"""Shared slowapi rate limiter instance.

Mounted in app/main.py (SlowAPIMiddleware reads app.state.limiter) and applied
per route with @limiter.limit(). One instance so every route shares the same
counter store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)
