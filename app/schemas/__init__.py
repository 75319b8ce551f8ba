"""Pydantic request/response schemas."""

from app.schemas.actions import ActionCreate, ActionOut, ActionUpdate
from app.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    ExpiredPasswordChangeRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    UserPayload,
)
from app.schemas.health import HealthResponse
from app.schemas.incidents import IncidentCreate, IncidentFilters, IncidentOut
from app.schemas.lookups import (
    LookupItemCreate,
    LookupItemOut,
    LookupItemRename,
    LookupOverview,
    TitleOut,
    TitlesByCategory,
)
from app.schemas.users import (
    AdminPasswordReset,
    PasswordChangeResponse,
    UserCreate,
    UserOut,
    UserUpdate,
)

__all__ = [
    "ActionCreate",
    "ActionOut",
    "ActionUpdate",
    "AdminPasswordReset",
    "ChangePasswordRequest",
    "CurrentUser",
    "ExpiredPasswordChangeRequest",
    "HealthResponse",
    "IncidentCreate",
    "IncidentFilters",
    "IncidentOut",
    "LoginRequest",
    "LookupItemCreate",
    "LookupItemOut",
    "LookupItemRename",
    "LookupOverview",
    "LoginResponse",
    "MeResponse",
    "MessageResponse",
    "PasswordChangeResponse",
    "RefreshRequest",
    "RefreshResponse",
    "TitleOut",
    "TitlesByCategory",
    "UserCreate",
    "UserOut",
    "UserPayload",
    "UserUpdate",
]
