"""Identity store: user lookups and password updates used by the auth layer."""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from app.models.user import User

logger = logging.getLogger(__name__)


class IdentityStoreUnavailable(Exception):
    """The database behind the identity store could not be reached."""


class IdentityStore:
    """
    Query-by-id, query-by-username and password update over a request-scoped session.

    Driver-level failures (connection refused, dropped connection) surface as
    IdentityStoreUnavailable so callers can choose to degrade or fail.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        try:
            return self.db.query(User).filter(User.id == user_id).first()
        except DBAPIError as e:
            self._rollback()
            raise IdentityStoreUnavailable(str(e.orig or e)) from e

    def get_by_username(self, username: str) -> User | None:
        try:
            return self.db.query(User).filter(User.username == username).first()
        except DBAPIError as e:
            self._rollback()
            raise IdentityStoreUnavailable(str(e.orig or e)) from e

    def get_password_changed_at(self, user_id: int) -> datetime | None:
        user = self.get_by_id(user_id)
        return user.password_changed_at if user is not None else None

    def update_password(self, user: User, password_hash: str) -> User:
        """Store a new hash and refresh password_changed_at in one commit."""
        user.password_hash = password_hash
        user.password_changed_at = datetime.now(UTC)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Password updated", extra={"user_id": user.id})
        return user

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except DBAPIError:
            logger.debug("Rollback after store failure also failed")
