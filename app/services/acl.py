"""Ownership/role predicates shared by the incident and action modules.

Both predicates are pure functions of (identity, ownership descriptor).
"""

from dataclasses import dataclass
from typing import Protocol

from app.core.roles import ROLE_DEFENSE_ADMIN, ROLE_SYSTEM_ADMIN, normalize_role

CYBER_CATEGORY_ID = 1
PHYSICAL_CATEGORY_ID = 2

CATEGORY_CYBER = "cyber"
CATEGORY_PHYSICAL = "physical"


def category_label(category_id: int | None) -> str:
    """Map a category id to its label (1 → cyber, 2 → physical, else cat_<id>)."""
    if category_id == CYBER_CATEGORY_ID:
        return CATEGORY_CYBER
    if category_id == PHYSICAL_CATEGORY_ID:
        return CATEGORY_PHYSICAL
    return f"cat_{category_id if category_id is not None else ''}"


class Identity(Protocol):
    id: int
    role: str


@dataclass(frozen=True)
class OwnershipDescriptor:
    owner_id: int | None
    category: str

    @classmethod
    def for_incident(cls, incident) -> "OwnershipDescriptor":
        return cls(owner_id=incident.reporter_id, category=category_label(incident.category_id))


def _admin_grants(identity: Identity, resource: OwnershipDescriptor) -> bool:
    role = normalize_role(identity.role)
    if role == ROLE_SYSTEM_ADMIN:
        return True
    return role == ROLE_DEFENSE_ADMIN and resource.category == CATEGORY_PHYSICAL


def can_read(identity: Identity | None, resource: OwnershipDescriptor | None) -> bool:
    """System-admin, defense-admin on physical resources, or the owner."""
    if identity is None or resource is None:
        return False
    if _admin_grants(identity, resource):
        return True
    if normalize_role(identity.role) == ROLE_DEFENSE_ADMIN:
        return False
    return resource.owner_id is not None and resource.owner_id == identity.id


def can_act(identity: Identity | None, resource: OwnershipDescriptor | None) -> bool:
    """Like can_read but without the owner fallback."""
    if identity is None or resource is None:
        return False
    return _admin_grants(identity, resource)
