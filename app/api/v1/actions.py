"""Actions taken on incidents: list (readers), create/update/delete (admins on their category)."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_roles
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.roles import ROLE_DEFENSE_ADMIN
from app.models import Action, Incident
from app.schemas.actions import ActionCreate, ActionOut, ActionUpdate
from app.schemas.auth import CurrentUser
from app.services.acl import OwnershipDescriptor, can_act, can_read
from app.services.actions import (
    ActionLimitReached,
    create_action,
    delete_action,
    update_action,
)
from app.services.lookups import LookupNotFound, LookupType, ensure_exists

router = APIRouter()

require_incident_admin = require_roles(ROLE_DEFENSE_ADMIN)


def to_action_out(action: Action) -> ActionOut:
    out = ActionOut.model_validate(action)
    out.admin_fullname = action.author.fullname if action.author else None
    out.status_name = action.status.name if action.status else None
    return out


def _incident_or_404(db: Session, incident_id: int) -> Incident:
    incident = db.query(Incident).filter(Incident.id == incident_id).first()
    if incident is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found.")
    return incident


def _action_or_404(db: Session, action_id: int) -> Action:
    action = db.query(Action).filter(Action.id == action_id).first()
    if action is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Action not found.")
    return action


def _require_known_status(db: Session, status_id: int | None) -> None:
    try:
        ensure_exists(db, LookupType.STATUS, status_id)
    except LookupNotFound as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


def _require_can_act(user: CurrentUser, incident: Incident) -> None:
    if not can_act(user, OwnershipDescriptor.for_incident(incident)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to act on this incident.",
        )


@router.get("/{incident_id}", response_model=list[ActionOut])
def list_actions(
    incident_id: int,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[ActionOut]:
    """Actions for an incident, newest first. Anyone who can read the incident can read these."""
    incident = _incident_or_404(db, incident_id)
    if not can_read(current_user, OwnershipDescriptor.for_incident(incident)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
    rows = (
        db.query(Action)
        .filter(Action.incident_id == incident_id)
        .order_by(Action.id.desc())
        .all()
    )
    return [to_action_out(a) for a in rows]


@router.post("", response_model=ActionOut, status_code=status.HTTP_201_CREATED)
def post_action(
    body: ActionCreate,
    current_user: Annotated[CurrentUser, Depends(require_incident_admin)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ActionOut:
    incident = _incident_or_404(db, body.incident_id)
    _require_can_act(current_user, incident)
    _require_known_status(db, body.status_id)
    try:
        action = create_action(
            db,
            incident,
            description=body.description,
            created_by=current_user.id,
            action_date=body.action_date,
            status_id=body.status_id,
            max_actions=settings.MAX_ACTIONS_PER_INCIDENT,
        )
    except ActionLimitReached as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return to_action_out(action)


@router.put("/{action_id}", response_model=ActionOut)
def put_action(
    action_id: int,
    body: ActionUpdate,
    current_user: Annotated[CurrentUser, Depends(require_incident_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ActionOut:
    action = _action_or_404(db, action_id)
    _require_can_act(current_user, action.incident)
    changes = body.model_dump(exclude_unset=True)
    _require_known_status(db, changes.get("status_id"))
    action = update_action(db, action, changes)
    return to_action_out(action)


@router.delete("/{action_id}")
def remove_action(
    action_id: int,
    current_user: Annotated[CurrentUser, Depends(require_incident_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, bool]:
    action = _action_or_404(db, action_id)
    _require_can_act(current_user, action.incident)
    delete_action(db, action)
    return {"ok": True}
