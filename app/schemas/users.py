"""Request/response schemas for user administration."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

RoleValue = Literal["user", "defense-admin", "system-admin"]
StatusValue = Literal["active", "inactive"]


def _strip_required(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be empty")
    return stripped


class UserOut(BaseModel):
    """User as returned by the admin API (no password fields)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    fullname: str
    position: str | None = None
    role: str
    status: str
    created_at: datetime | None = None


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    fullname: str = Field(..., min_length=1, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    role: RoleValue
    status: StatusValue = "active"
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username", "fullname")
    @classmethod
    def strip_names(cls, v: str) -> str:
        return _strip_required(v)


class UserUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    username: str | None = Field(default=None, max_length=255)
    fullname: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    role: RoleValue | None = None
    status: StatusValue | None = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str | None) -> str | None:
        return _strip_required(v) if v is not None else None


class AdminPasswordReset(BaseModel):
    password: str = Field(..., min_length=1, max_length=128)


class PasswordChangeResponse(BaseModel):
    success: bool = True
    user: UserOut
