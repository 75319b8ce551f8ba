"""Incident reporting: own reports, admin listing with filters, detail, and creation."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.api.deps import get_current_user, require_roles
from app.core.database import get_db
from app.core.roles import ROLE_DEFENSE_ADMIN, normalize_role
from app.models import Incident
from app.schemas.auth import CurrentUser
from app.schemas.incidents import IncidentCreate, IncidentFilters, IncidentOut
from app.services.acl import (
    PHYSICAL_CATEGORY_ID,
    OwnershipDescriptor,
    can_read,
    category_label,
)
from app.services.lookups import (
    LookupFailure,
    LookupType,
    ensure_exists,
    resolve_title,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_SEARCH_LEN = 256


def to_incident_out(incident: Incident) -> IncidentOut:
    """Flatten an incident with its reporter and latest action."""
    actions = list(incident.actions or [])
    last = actions[-1] if actions else None
    reporter = incident.reporter
    return IncidentOut(
        id=incident.id,
        title=incident.title,
        description=incident.description,
        category_id=incident.category_id,
        category_label=category_label(incident.category_id),
        location_id=incident.location_id,
        location_name=incident.location.name if incident.location else None,
        priority_id=incident.priority_id,
        priority_name=incident.priority.name if incident.priority else None,
        status_id=incident.status_id,
        status_name=incident.status.name if incident.status else None,
        reporter_id=incident.reporter_id,
        reporter_username=reporter.username if reporter else None,
        reporter_fullname=reporter.fullname if reporter else None,
        submission_date=incident.submission_date,
        created_at=incident.created_at,
        updated_at=incident.updated_at,
        first_action_at=incident.first_action_at,
        resolved_at=incident.resolved_at,
        actions_count=len(actions),
        last_action_description=last.description if last else None,
        last_action_at=last.created_at if last else None,
        last_action_status_id=last.status_id if last else None,
    )


def _base_query(db: Session):
    return db.query(Incident).options(selectinload(Incident.actions))


@router.get("/mine", response_model=list[IncidentOut])
def list_my_incidents(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[IncidentOut]:
    """Incidents reported by the signed-in user, newest first."""
    rows = (
        _base_query(db)
        .filter(Incident.reporter_id == current_user.id)
        .order_by(Incident.id.desc())
        .all()
    )
    return [to_incident_out(i) for i in rows]


@router.get("", response_model=list[IncidentOut])
def list_incidents(
    current_user: Annotated[CurrentUser, Depends(require_roles(ROLE_DEFENSE_ADMIN))],
    db: Annotated[Session, Depends(get_db)],
    filters: Annotated[IncidentFilters, Depends()],
) -> list[IncidentOut]:
    """
    Admin listing with filters. Defense-admins only ever see physical incidents,
    whatever scope or category they ask for.
    """
    category_id = filters.category_id
    scope = filters.scope
    if normalize_role(current_user.role) == ROLE_DEFENSE_ADMIN:
        category_id = PHYSICAL_CATEGORY_ID
        scope = "physical"

    query = _base_query(db)
    if scope == "physical":
        query = query.filter(Incident.category_id == PHYSICAL_CATEGORY_ID)
    if filters.status_id:
        query = query.filter(Incident.status_id == filters.status_id)
    if filters.priority_id:
        query = query.filter(Incident.priority_id == filters.priority_id)
    if filters.location_id:
        query = query.filter(Incident.location_id == filters.location_id)
    if category_id:
        query = query.filter(Incident.category_id == category_id)
    if filters.reporter_id:
        query = query.filter(Incident.reporter_id == filters.reporter_id)
    if filters.search and filters.search.strip():
        like = f"%{filters.search.strip()[:MAX_SEARCH_LEN]}%"
        query = query.filter(or_(Incident.title.ilike(like), Incident.description.ilike(like)))
    return [to_incident_out(i) for i in query.order_by(Incident.id.desc()).all()]


@router.get("/{incident_id}", response_model=IncidentOut)
def get_incident(
    incident_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> IncidentOut:
    incident = _base_query(db).filter(Incident.id == incident_id).first()
    if incident is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found.")
    if not can_read(current_user, OwnershipDescriptor.for_incident(incident)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
    return to_incident_out(incident)


@router.post("", response_model=IncidentOut, status_code=status.HTTP_201_CREATED)
def create_incident(
    body: IncidentCreate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> IncidentOut:
    """
    Report an incident as the signed-in user. A custom title_text wins over
    title_id; a predefined title must belong to the incident's category.
    """
    try:
        title = body.custom_title or resolve_title(db, body.title_id, body.category_id)
        ensure_exists(db, LookupType.LOCATION, body.location_id)
        ensure_exists(db, LookupType.PRIORITY, body.priority_id)
        ensure_exists(db, LookupType.STATUS, body.status_id)
    except LookupFailure as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    now = datetime.now(UTC)
    incident = Incident(
        title=title,
        description=body.description.strip(),
        location_id=body.location_id,
        priority_id=body.priority_id,
        category_id=body.category_id,
        status_id=body.status_id,
        reporter_id=current_user.id,
        submission_date=body.submission_date or now,
        created_at=now,
    )
    db.add(incident)
    db.commit()
    db.refresh(incident)
    logger.info(
        "Incident reported",
        extra={"incident_id": incident.id, "category_id": incident.category_id},
    )
    return to_incident_out(incident)
