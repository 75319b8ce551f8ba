"""Lookup table maintenance and the reference checks incidents and actions rely on."""

import enum
import logging

from sqlalchemy.orm import Session

from app.models import Action, Incident, IncidentTitle, Location, Priority, Status
from app.services.acl import CYBER_CATEGORY_ID, PHYSICAL_CATEGORY_ID, category_label

logger = logging.getLogger(__name__)


class LookupType(str, enum.Enum):
    LOCATION = "location"
    PRIORITY = "priority"
    STATUS = "status"
    TITLE = "title"


_MODELS = {
    LookupType.LOCATION: Location,
    LookupType.PRIORITY: Priority,
    LookupType.STATUS: Status,
    LookupType.TITLE: IncidentTitle,
}


class LookupFailure(Exception):
    """Base for lookup failures; the message is safe to show to clients."""


class LookupNotFound(LookupFailure):
    pass


class LookupInUse(LookupFailure):
    pass


class TitleCategoryMismatch(LookupFailure):
    pass


def _label_attr(item_type: LookupType) -> str:
    return "title" if item_type is LookupType.TITLE else "name"


def normalize_title_category(category_id: int | None) -> int:
    """Titles are either physical (2) or cyber (1); anything else is filed as cyber."""
    return PHYSICAL_CATEGORY_ID if category_id == PHYSICAL_CATEGORY_ID else CYBER_CATEGORY_ID


def get_item(db: Session, item_type: LookupType, item_id: int):
    model = _MODELS[item_type]
    item = db.query(model).filter(model.id == item_id).first()
    if item is None:
        raise LookupNotFound(f"Unknown {item_type.value} {item_id}.")
    return item


def list_items(db: Session, item_type: LookupType) -> list:
    model = _MODELS[item_type]
    return db.query(model).order_by(model.id.asc()).all()


def titles_for_category(db: Session, category_id: int) -> list[IncidentTitle]:
    return (
        db.query(IncidentTitle)
        .filter(IncidentTitle.category_id == category_id)
        .order_by(IncidentTitle.id.asc())
        .all()
    )


def add_item(db: Session, item_type: LookupType, name: str, category_id: int | None = None):
    model = _MODELS[item_type]
    if item_type is LookupType.TITLE:
        item = model(title=name, category_id=normalize_title_category(category_id))
    else:
        item = model(name=name)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("Lookup item added", extra={"type": item_type.value, "item_id": item.id})
    return item


def rename_item(db: Session, item, item_type: LookupType, name: str):
    setattr(item, _label_attr(item_type), name)
    db.commit()
    db.refresh(item)
    return item


def _usage_count(db: Session, item_type: LookupType, item_id: int) -> int:
    if item_type is LookupType.LOCATION:
        return db.query(Incident).filter(Incident.location_id == item_id).count()
    if item_type is LookupType.PRIORITY:
        return db.query(Incident).filter(Incident.priority_id == item_id).count()
    if item_type is LookupType.STATUS:
        return (
            db.query(Incident).filter(Incident.status_id == item_id).count()
            + db.query(Action).filter(Action.status_id == item_id).count()
        )
    # Incidents copy the title text, so titles are never referenced.
    return 0


def delete_item(db: Session, item, item_type: LookupType) -> None:
    """Raises LookupInUse while incidents or actions still reference the item."""
    item_id = item.id
    if _usage_count(db, item_type, item_id):
        raise LookupInUse(f"This {item_type.value} is still in use and cannot be deleted.")
    db.delete(item)
    db.commit()
    logger.info("Lookup item deleted", extra={"type": item_type.value, "item_id": item_id})


def resolve_title(db: Session, title_id: int, category_id: int) -> str:
    """Text of a predefined title, which must belong to the incident's category."""
    title = get_item(db, LookupType.TITLE, title_id)
    if title.category_id != category_id:
        raise TitleCategoryMismatch(
            f"Incident title {title_id} is not a {category_label(category_id)} title."
        )
    return title.title


def ensure_exists(db: Session, item_type: LookupType, item_id: int | None) -> None:
    """Raise LookupNotFound for a dangling reference; None is allowed."""
    if item_id is not None:
        get_item(db, item_type, item_id)
