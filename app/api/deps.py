"""Access control dependencies: bearer authentication, password-expiry gate, role gate.

get_current_user runs a fixed pipeline and stops at the first failing step:

1. extract the bearer token          -> 401 NO_TOKEN
2. verify it against the key ring    -> 401 EXPIRED_ACCESS / INVALID_ACCESS
3. hydrate the identity from the DB  -> 403 "User not found"; falls back to token
                                        claims when the store is unreachable
4. password-expiry gate              -> 403 PASSWORD_EXPIRED unless whitelisted
5. attach CurrentUser to request.state.user

Every failure is an ApiError rendered by the handlers in app.api.http_setup.
"""

import logging
from datetime import datetime
from functools import lru_cache
from typing import Annotated, Any, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import (
    EXPIRED_ACCESS,
    INVALID_ACCESS,
    NO_TOKEN,
    ApiError,
    AuthenticationError,
    AuthorizationError,
    IdentityNotFoundError,
    InternalError,
    PasswordExpiredError,
)
from app.core.password_policy import is_password_expired_for
from app.core.roles import ROLE_SYSTEM_ADMIN, ROLE_USER, is_known_role, normalize_role
from app.core.tokens import TokenExpiredError, TokenError, TokenService, build_token_service
from app.schemas.auth import CurrentUser
from app.services.identity_store import IdentityStore, IdentityStoreUnavailable

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Routes reachable with an expired password so the user can fix it or sign out.
# Matched against the (method, route name) resolved by the router, not the raw URL.
EXPIRY_WHITELIST: frozenset[tuple[str, str]] = frozenset(
    {
        ("GET", "auth_me"),
        ("PATCH", "auth_change_password"),
        ("POST", "auth_logout"),
    }
)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide TokenService, built once from settings."""
    return build_token_service(get_settings())


def get_identity_store(db: Annotated[Session, Depends(get_db)]) -> IdentityStore:
    return IdentityStore(db)


def is_expiry_whitelisted(request: Request) -> bool:
    route = request.scope.get("route")
    name = getattr(route, "name", None)
    if not name:
        return False
    return (request.method.upper(), name) in EXPIRY_WHITELIST


def _subject_id(claims: dict[str, Any]) -> int:
    raw = claims.get("id")
    if isinstance(raw, bool):
        raise AuthenticationError("Invalid token.", INVALID_ACCESS)
    try:
        user_id = int(raw)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token.", INVALID_ACCESS)
    if user_id <= 0:
        raise AuthenticationError("Invalid token.", INVALID_ACCESS)
    return user_id


def _verify(tokens: TokenService, credentials: HTTPAuthorizationCredentials | None) -> dict[str, Any]:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("You must sign in first.", NO_TOKEN)
    try:
        return tokens.verify_access(credentials.credentials)
    except TokenExpiredError:
        raise AuthenticationError("Session has expired.", EXPIRED_ACCESS)
    except TokenError:
        raise AuthenticationError("Invalid token.", INVALID_ACCESS)


def _hydrate(
    store: IdentityStore, user_id: int, claims: dict[str, Any], fail_closed: bool
) -> tuple[CurrentUser, datetime | None, bool]:
    """
    Resolve the identity from the store.

    Returns (identity, password_changed_at, hydrated). hydrated is False when the
    store was unreachable and the identity was built from token claims.
    """
    try:
        user = store.get_by_id(user_id)
    except IdentityStoreUnavailable as e:
        if fail_closed:
            logger.warning("Identity store unavailable; rejecting request", extra={"user_id": user_id})
            raise AuthenticationError("Unable to verify account.", INVALID_ACCESS) from e
        logger.warning(
            "Identity store unavailable; trusting token claims",
            extra={"user_id": user_id},
        )
        identity = CurrentUser(
            id=user_id,
            username=str(claims.get("username") or ""),
            fullname=str(claims.get("fullname") or ""),
            role=str(claims.get("role") or ROLE_USER),
        )
        return identity, None, False
    if user is None:
        raise IdentityNotFoundError("User not found.")
    identity = CurrentUser(
        id=user.id,
        username=user.username or str(claims.get("username") or ""),
        fullname=user.fullname or str(claims.get("fullname") or ""),
        role=user.role or str(claims.get("role") or ROLE_USER),
    )
    return identity, user.password_changed_at, True


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """Dependency: authenticate the bearer token and return the current user."""
    try:
        claims = _verify(tokens, credentials)
        user_id = _subject_id(claims)
        identity, changed_at, hydrated = _hydrate(
            store, user_id, claims, settings.AUTH_FAIL_CLOSED_ON_STORE_ERROR
        )

        if normalize_role(identity.role) != ROLE_SYSTEM_ADMIN and not hydrated:
            # Degraded hydration has no timestamp; this lookup must succeed.
            try:
                changed_at = store.get_password_changed_at(user_id)
            except IdentityStoreUnavailable as e:
                logger.error("Identity store unavailable during password expiry check")
                raise InternalError() from e

        expired = is_password_expired_for(
            identity.role, changed_at, settings.PASSWORD_MAX_AGE_DAYS
        )
        if expired and not is_expiry_whitelisted(request):
            raise PasswordExpiredError()
    except ApiError as e:
        logger.info(
            "Authentication rejected",
            extra={
                "code": e.code,
                "status_code": e.status_code,
                "path": request.url.path,
                "method": request.method,
            },
        )
        raise
    except Exception as e:
        logger.exception("Unexpected error in authentication")
        raise InternalError() from e

    request.state.user = identity
    return identity


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """
    Build a dependency that admits only the given roles (case-insensitive).

    system-admin always passes. Depends on get_current_user, so it never runs before it.
    """
    allowed = frozenset(normalize_role(r) for r in roles)

    def role_gate(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        role = normalize_role(current_user.role)
        if not is_known_role(role):
            raise AuthenticationError("You must sign in first.")
        if role == ROLE_SYSTEM_ADMIN:
            return current_user
        if role not in allowed:
            raise AuthorizationError("Access denied.")
        return current_user

    return role_gate


require_system_admin = require_roles(ROLE_SYSTEM_ADMIN)
