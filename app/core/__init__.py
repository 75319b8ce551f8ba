"""Core app configuration, database, and auth primitives."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import ApiError, AuthenticationError, AuthorizationError

__all__ = [
    "ApiError",
    "AuthenticationError",
    "AuthorizationError",
    "get_db",
    "get_settings",
    "settings",
]
