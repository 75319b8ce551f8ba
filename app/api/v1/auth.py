"""Auth endpoints: login, profile, password change, logout, token refresh."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.deps import (
    get_current_user,
    get_identity_store,
    get_token_service,
)
from app.api.limiter import limiter
from app.core.config import Settings, get_settings, settings as app_settings
from app.core.errors import EXPIRED_ACCESS, INVALID_ACCESS, AuthenticationError, PasswordExpiredError
from app.core.password_policy import COMPLEXITY_MESSAGE, is_password_expired_for, meets_complexity
from app.core.roles import STATUS_ACTIVE
from app.core.security import hash_password, verify_password
from app.core.tokens import TokenExpiredError, TokenError, TokenService
from app.models.user import User
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
from app.services.identity_store import IdentityStore

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CREDENTIALS = "Invalid username or password."


def build_user_payload(user: User) -> UserPayload:
    return UserPayload(
        id=user.id,
        username=user.username,
        role=user.role,
        fullname=user.fullname or "",
        position=user.position or "",
        status=user.status or STATUS_ACTIVE,
    )


def check_password(plain: str, user: User) -> bool:
    """verify_password, treating a corrupt stored hash as a mismatch (logged)."""
    try:
        return verify_password(plain, user.password_hash)
    except ValueError:
        logger.error("Stored password hash is malformed", extra={"user_id": user.id})
        return False


def _require_complexity(new_password: str) -> None:
    if not meets_complexity(new_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=COMPLEXITY_MESSAGE)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(app_settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    body: LoginRequest,
    store: Annotated[IdentityStore, Depends(get_identity_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    user = store.get_by_username(body.username.strip())
    if user is None or not user.password_hash:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    if not check_password(body.password, user):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    if user.status and user.status != STATUS_ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive.")
    if is_password_expired_for(user.role, user.password_changed_at, settings.PASSWORD_MAX_AGE_DAYS):
        raise PasswordExpiredError()

    payload = build_user_payload(user)
    access_token = tokens.sign_access(payload.model_dump())
    refresh_token = tokens.sign_refresh({"id": user.id})
    logger.info("Login succeeded", extra={"user_id": user.id})
    return LoginResponse(access_token=access_token, refresh_token=refresh_token, user=payload)


@router.get("/me", response_model=MeResponse, name="auth_me")
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> MeResponse:
    """Return the stored profile of the signed-in user."""
    user = store.get_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return MeResponse(user=build_user_payload(user))


@router.patch("/password", response_model=MessageResponse, name="auth_change_password")
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> MessageResponse:
    """Change the signed-in user's password. Reachable with an expired password."""
    _require_complexity(body.new_password)
    user = store.get_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if not check_password(body.current_password, user):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect.")
    store.update_password(user, hash_password(body.new_password))
    return MessageResponse(message="Your password has been changed.")


@router.post("/password/expired-change", response_model=MessageResponse)
def change_expired_password(
    body: ExpiredPasswordChangeRequest,
    store: Annotated[IdentityStore, Depends(get_identity_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """
    Change an expired password without a token (login is refused while expired).
    Only allowed when the password really has expired.
    """
    user = store.get_by_username(body.username.strip())
    if user is None or not user.password_hash:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if user.status and user.status != STATUS_ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive.")
    if not is_password_expired_for(user.role, user.password_changed_at, settings.PASSWORD_MAX_AGE_DAYS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password has not expired. Please sign in.",
        )
    if not check_password(body.current_password, user):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect.")
    _require_complexity(body.new_password)
    store.update_password(user, hash_password(body.new_password))
    return MessageResponse(message="Password changed. You can now sign in.")


@router.post("/logout", response_model=MessageResponse, name="auth_logout")
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse:
    """Tokens are not stored server-side; the client discards them."""
    logger.info("Logout", extra={"user_id": current_user.id})
    return MessageResponse(message="Signed out.")


@router.post("/refresh", response_model=RefreshResponse)
def refresh(
    body: RefreshRequest,
    store: Annotated[IdentityStore, Depends(get_identity_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RefreshResponse:
    """Exchange a refresh token for a new access token."""
    try:
        claims = tokens.verify_refresh(body.refresh_token)
    except TokenExpiredError:
        raise AuthenticationError("Session has expired.", EXPIRED_ACCESS)
    except TokenError:
        raise AuthenticationError("Invalid token.", INVALID_ACCESS)
    try:
        user_id = int(claims.get("id"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token.", INVALID_ACCESS)

    user = store.get_by_id(user_id)
    if user is None or (user.status and user.status != STATUS_ACTIVE):
        raise AuthenticationError("Invalid token.", INVALID_ACCESS)
    if is_password_expired_for(user.role, user.password_changed_at, settings.PASSWORD_MAX_AGE_DAYS):
        raise PasswordExpiredError()
    return RefreshResponse(access_token=tokens.sign_access(build_user_payload(user).model_dump()))
