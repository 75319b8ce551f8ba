"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class UserPayload(BaseModel):
    """Profile embedded in access tokens and returned by /auth/me."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    fullname: str = ""
    position: str = ""
    status: str = "active"


class LoginResponse(BaseModel):
    """Access and refresh tokens returned after successful login."""

    ok: bool = True
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserPayload


class MeResponse(BaseModel):
    ok: bool = True
    user: UserPayload


class CurrentUser(BaseModel):
    """Authenticated identity (id, username, fullname, role) attached to the request."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    fullname: str = ""
    role: str


class ChangePasswordRequest(BaseModel):
    """Password change for the signed-in user."""

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class ExpiredPasswordChangeRequest(ChangePasswordRequest):
    """Password change for a user whose password has expired (no token)."""

    username: str = Field(..., min_length=1, max_length=255)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class RefreshResponse(BaseModel):
    ok: bool = True
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    ok: bool = True
    message: str
