"""User administration (system-admin only, except self-service profile and password)."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_identity_store, require_system_admin
from app.api.v1.auth import check_password
from app.core.database import get_db
from app.core.password_policy import COMPLEXITY_MESSAGE, meets_complexity
from app.core.roles import ROLE_SYSTEM_ADMIN, normalize_role
from app.core.security import hash_password
from app.models.user import User
from app.schemas.auth import ChangePasswordRequest, CurrentUser
from app.schemas.users import (
    AdminPasswordReset,
    PasswordChangeResponse,
    UserCreate,
    UserOut,
    UserUpdate,
)
from app.services.identity_store import IdentityStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return user


def _ensure_username_free(db: Session, username: str) -> None:
    if db.query(User).filter(User.username == username).first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists.")


def _require_complexity(password: str) -> None:
    if not meets_complexity(password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=COMPLEXITY_MESSAGE)


@router.get("", response_model=list[UserOut])
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_system_admin)],
    db: Annotated[Session, Depends(get_db)],
    q: Annotated[str | None, Query(max_length=255)] = None,
    role: str | None = None,
    user_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[UserOut]:
    """List users, optionally filtered by text (username/fullname), role and status."""
    query = db.query(User)
    if q and q.strip():
        like = f"%{q.strip()}%"
        query = query.filter(or_(User.username.ilike(like), User.fullname.ilike(like)))
    if role:
        query = query.filter(User.role == role)
    if user_status:
        query = query.filter(User.status == user_status)
    return [UserOut.model_validate(u) for u in query.order_by(User.id.desc()).all()]


@router.patch("/me/password", response_model=PasswordChangeResponse)
def change_my_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> PasswordChangeResponse:
    """Self-service password change; requires the current password."""
    _require_complexity(body.new_password)
    user = store.get_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    if not check_password(body.current_password, user):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect.")
    user = store.update_password(user, hash_password(body.new_password))
    return PasswordChangeResponse(user=UserOut.model_validate(user))


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """System-admins can read anyone; other users only themselves."""
    if normalize_role(current_user.role) != ROLE_SYSTEM_ADMIN and current_user.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
    return UserOut.model_validate(_get_or_404(db, user_id))


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    admin: Annotated[CurrentUser, Depends(require_system_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    _ensure_username_free(db, body.username)
    _require_complexity(body.password)
    user = User(
        username=body.username,
        fullname=body.fullname,
        position=body.position.strip() if body.position else None,
        role=body.role,
        status=body.status,
        password_hash=hash_password(body.password),
        password_changed_at=datetime.now(UTC),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "by": admin.id})
    return UserOut.model_validate(user)


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    body: UserUpdate,
    _admin: Annotated[CurrentUser, Depends(require_system_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Partial profile/role/status update; omitted fields are unchanged."""
    user = _get_or_404(db, user_id)
    fields = body.model_dump(exclude_unset=True)
    if "username" in fields:
        if fields["username"] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username cannot be empty.")
        if fields["username"] != user.username:
            _ensure_username_free(db, fields["username"])
    for name in ("role", "status"):
        if name in fields and fields[name] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {name}.")
    if "fullname" in fields:
        fields["fullname"] = (fields["fullname"] or "").strip()
    if "position" in fields:
        fields["position"] = fields["position"].strip() if fields["position"] else None
    for name, value in fields.items():
        setattr(user, name, value)
    db.commit()
    db.refresh(user)
    return UserOut.model_validate(user)


@router.patch("/{user_id}/password", response_model=UserOut)
def reset_password(
    user_id: int,
    body: AdminPasswordReset,
    admin: Annotated[CurrentUser, Depends(require_system_admin)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> UserOut:
    """Set another user's password (no current password needed)."""
    _require_complexity(body.password)
    user = store.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    user = store.update_password(user, hash_password(body.password))
    logger.info("Password reset by admin", extra={"user_id": user_id, "by": admin.id})
    return UserOut.model_validate(user)


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: Annotated[CurrentUser, Depends(require_system_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, bool]:
    if admin.id == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account.")
    db.query(User).filter(User.id == user_id).delete()
    db.commit()
    logger.info("User deleted", extra={"user_id": user_id, "by": admin.id})
    return {"success": True}
