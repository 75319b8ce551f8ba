"""Role and account status values."""

ROLE_USER = "user"
ROLE_DEFENSE_ADMIN = "defense-admin"
ROLE_SYSTEM_ADMIN = "system-admin"

ROLE_VALUES: frozenset[str] = frozenset({ROLE_USER, ROLE_DEFENSE_ADMIN, ROLE_SYSTEM_ADMIN})

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"

STATUS_VALUES: frozenset[str] = frozenset({STATUS_ACTIVE, STATUS_INACTIVE})


def normalize_role(role: str | None) -> str:
    return str(role or "").strip().lower()


def is_known_role(role: str | None) -> bool:
    return normalize_role(role) in ROLE_VALUES
