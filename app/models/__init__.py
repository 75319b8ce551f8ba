"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.incident import Action, Incident
from app.models.lookup import IncidentTitle, Location, Priority, Status
from app.models.user import User

__all__ = [
    "Action",
    "Base",
    "Incident",
    "IncidentTitle",
    "Location",
    "Priority",
    "Status",
    "User",
]
