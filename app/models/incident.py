"""ORM models for reported incidents and the actions taken on them."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Incident(Base):
    """
    A reported security incident.

    category_id: 1 = cyber, 2 = physical. first_action_at and resolved_at are
    stamped by the actions service for response-time reporting.
    """

    __tablename__ = "incidents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=False)
    category_id = Column(Integer, nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    priority_id = Column(Integer, ForeignKey("priorities.id"), nullable=False)
    status_id = Column(Integer, ForeignKey("statuses.id"), nullable=True, index=True)
    reporter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    submission_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)
    first_action_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    reporter = relationship("User", lazy="joined")
    location = relationship("Location", lazy="joined")
    priority = relationship("Priority", lazy="joined")
    status = relationship("Status", lazy="joined")
    actions = relationship(
        "Action",
        back_populates="incident",
        order_by="Action.id",
        cascade="all, delete-orphan",
    )


class Action(Base):
    """A response action recorded by an admin against an incident."""

    __tablename__ = "actions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    incident_id = Column(Integer, ForeignKey("incidents.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    action_date = Column(Date, nullable=False)
    status_id = Column(Integer, ForeignKey("statuses.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    incident = relationship("Incident", back_populates="actions")
    author = relationship("User", lazy="joined")
    status = relationship("Status", lazy="joined")
