"""Incident action bookkeeping: per-incident cap, status sync, and response-time stamps."""

import logging
from datetime import UTC, date, datetime

from sqlalchemy.orm import Session

from app.models.incident import Action, Incident

logger = logging.getLogger(__name__)

# Status id meaning "resolved"; reaching it stamps incidents.resolved_at once.
CLOSED_STATUS_ID = 4
DEFAULT_MAX_ACTIONS_PER_INCIDENT = 10


class ActionLimitReached(Exception):
    """The incident already has the maximum number of actions."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"At most {limit} actions can be recorded for an incident.")
        self.limit = limit


def _sync_incident_status(incident: Incident, status_id: int | None, now: datetime) -> None:
    if status_id is None:
        return
    incident.status_id = status_id
    incident.updated_at = now
    if status_id == CLOSED_STATUS_ID and incident.resolved_at is None:
        incident.resolved_at = now


def create_action(
    db: Session,
    incident: Incident,
    description: str,
    created_by: int | None,
    action_date: date | None = None,
    status_id: int | None = None,
    max_actions: int = DEFAULT_MAX_ACTIONS_PER_INCIDENT,
) -> Action:
    """
    Record an action on an incident.

    Raises ActionLimitReached when the incident already has max_actions actions.
    The first action stamps first_action_at; a status is copied onto the incident.
    """
    count = db.query(Action).filter(Action.incident_id == incident.id).count()
    if count >= max_actions:
        raise ActionLimitReached(max_actions)

    now = datetime.now(UTC)
    action = Action(
        incident_id=incident.id,
        description=description,
        action_date=action_date or now.date(),
        status_id=status_id,
        created_by=created_by,
        created_at=now,
    )
    db.add(action)
    if incident.first_action_at is None:
        incident.first_action_at = now
    incident.updated_at = now
    _sync_incident_status(incident, status_id, now)
    db.commit()
    db.refresh(action)
    logger.info(
        "Action recorded",
        extra={"incident_id": incident.id, "action_id": action.id, "status_id": status_id},
    )
    return action


def update_action(db: Session, action: Action, changes: dict) -> Action:
    """
    Apply a partial update. changes holds only the fields the client sent:
    action_date=None resets to today, status_id=None clears the action status.
    """
    now = datetime.now(UTC)
    if "description" in changes and changes["description"] is not None:
        action.description = changes["description"].strip()
    if "action_date" in changes:
        action.action_date = changes["action_date"] or now.date()
    if "status_id" in changes:
        action.status_id = changes["status_id"]
        _sync_incident_status(action.incident, changes["status_id"], now)
    if changes:
        action.updated_at = now
    db.commit()
    db.refresh(action)
    return action


def delete_action(db: Session, action: Action) -> None:
    action_id = action.id
    db.delete(action)
    db.commit()
    logger.info("Action deleted", extra={"action_id": action_id})
