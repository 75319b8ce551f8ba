"""ORM model for application users (identity + credential record)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'user', 'defense-admin' or 'system-admin'
    status: 'active' or 'inactive'
    password_changed_at drives password expiry; it is refreshed whenever password_hash changes.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    fullname = Column(String(255), nullable=False, default="")
    position = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default="user")
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    password_changed_at = Column(DateTime(timezone=True), nullable=True)
