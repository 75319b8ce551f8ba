"""Lookup tables maintained by admins: locations, priorities, statuses and predefined incident titles."""

from sqlalchemy import Column, Integer, String

from app.models.base import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)


class Priority(Base):
    """Risk level of an incident."""

    __tablename__ = "priorities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)


class Status(Base):
    """Workflow status shared by incidents and actions; id 4 means resolved."""

    __tablename__ = "statuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)


class IncidentTitle(Base):
    """Predefined title offered when reporting; scoped to a category (1 = cyber, 2 = physical)."""

    __tablename__ = "incident_titles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(512), nullable=False)
    category_id = Column(Integer, nullable=False, index=True)
