"""Lookup tables behind the reporting forms. Any signed-in user reads; admins maintain."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_roles
from app.core.database import get_db
from app.core.roles import ROLE_DEFENSE_ADMIN
from app.models import IncidentTitle
from app.schemas.auth import CurrentUser
from app.schemas.lookups import (
    LookupItemCreate,
    LookupItemOut,
    LookupItemRename,
    LookupOverview,
    TitleOut,
    TitlesByCategory,
)
from app.services.acl import (
    CYBER_CATEGORY_ID,
    PHYSICAL_CATEGORY_ID,
    OwnershipDescriptor,
    can_act,
    category_label,
)
from app.services.lookups import (
    LookupInUse,
    LookupNotFound,
    LookupType,
    add_item,
    delete_item,
    get_item,
    list_items,
    normalize_title_category,
    rename_item,
    titles_for_category,
)

router = APIRouter()

require_lookup_admin = require_roles(ROLE_DEFENSE_ADMIN)


def to_item_out(item) -> LookupItemOut:
    if isinstance(item, IncidentTitle):
        return LookupItemOut(id=item.id, name=item.title, category_id=item.category_id)
    return LookupItemOut(id=item.id, name=item.name)


def to_title_out(title: IncidentTitle) -> TitleOut:
    return TitleOut(title_id=title.id, title=title.title, category_id=title.category_id)


def _require_title_scope(user: CurrentUser, category_id: int) -> None:
    # Defense-admins manage physical titles only; other lookups are shared.
    if not can_act(user, OwnershipDescriptor(owner_id=None, category=category_label(category_id))):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to manage titles of this category.",
        )


def _item_or_404(db: Session, item_type: LookupType, item_id: int):
    try:
        return get_item(db, item_type, item_id)
    except LookupNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("", response_model=LookupOverview)
def get_lookups(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> LookupOverview:
    return LookupOverview(
        titles=TitlesByCategory(
            cyber=[to_title_out(t) for t in titles_for_category(db, CYBER_CATEGORY_ID)],
            physical=[to_title_out(t) for t in titles_for_category(db, PHYSICAL_CATEGORY_ID)],
        ),
        locations=[to_item_out(i) for i in list_items(db, LookupType.LOCATION)],
        priorities=[to_item_out(i) for i in list_items(db, LookupType.PRIORITY)],
        statuses=[to_item_out(i) for i in list_items(db, LookupType.STATUS)],
    )


@router.get("/titles", response_model=list[TitleOut])
def get_titles(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    category_id: Annotated[int, Query(ge=1)],
) -> list[TitleOut]:
    """Predefined titles for one category."""
    return [to_title_out(t) for t in titles_for_category(db, category_id)]


@router.post("/{item_type}", response_model=LookupItemOut, status_code=status.HTTP_201_CREATED)
def create_lookup_item(
    item_type: LookupType,
    body: LookupItemCreate,
    current_user: Annotated[CurrentUser, Depends(require_lookup_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> LookupItemOut:
    if item_type is LookupType.TITLE:
        _require_title_scope(current_user, normalize_title_category(body.category_id))
    return to_item_out(add_item(db, item_type, body.name, body.category_id))


@router.put("/{item_type}/{item_id}", response_model=LookupItemOut)
def rename_lookup_item(
    item_type: LookupType,
    item_id: int,
    body: LookupItemRename,
    current_user: Annotated[CurrentUser, Depends(require_lookup_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> LookupItemOut:
    item = _item_or_404(db, item_type, item_id)
    if item_type is LookupType.TITLE:
        _require_title_scope(current_user, item.category_id)
    return to_item_out(rename_item(db, item, item_type, body.name))


@router.delete("/{item_type}/{item_id}")
def delete_lookup_item(
    item_type: LookupType,
    item_id: int,
    current_user: Annotated[CurrentUser, Depends(require_lookup_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict[str, bool]:
    item = _item_or_404(db, item_type, item_id)
    if item_type is LookupType.TITLE:
        _require_title_scope(current_user, item.category_id)
    try:
        delete_item(db, item, item_type)
    except LookupInUse as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return {"ok": True}
