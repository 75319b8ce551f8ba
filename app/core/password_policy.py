"""Password complexity and age rules."""

import re
from datetime import UTC, datetime

from app.core.roles import ROLE_SYSTEM_ADMIN, normalize_role

DEFAULT_MAX_AGE_DAYS = 90
MIN_LENGTH = 8

# Persian letters occupy U+0622..U+06CC; they count as "upper" and as letters for the symbol test.
_UPPER_RE = re.compile(r"[A-Zآ-ی]")
_LOWER_LATIN_RE = re.compile(r"[a-z]")
_LOWER_PERSIAN_RE = re.compile(r"[اآبپتثجچحخدذرزژسشصضطظعغفقکگلمنوهی]")
_DIGIT_RE = re.compile(r"[0-9]")
_SYMBOL_RE = re.compile(r"[^A-Za-z0-9آ-ی]")

COMPLEXITY_MESSAGE = (
    "New password must be at least 8 characters and include upper and lower case "
    "letters, a digit and a symbol."
)


def meets_complexity(candidate: str | None) -> bool:
    """True when the password satisfies all five complexity clauses."""
    p = candidate or ""
    return (
        len(p) >= MIN_LENGTH
        and _UPPER_RE.search(p) is not None
        and (_LOWER_LATIN_RE.search(p) is not None or _LOWER_PERSIAN_RE.search(p) is not None)
        and _DIGIT_RE.search(p) is not None
        and _SYMBOL_RE.search(p) is not None
    )


def _as_utc(value: datetime | str | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        # Naive timestamps from the store are UTC.
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def password_age_days(
    password_changed_at: datetime | str | None, now: datetime | None = None
) -> int | None:
    """Whole days since the last change, or None when the timestamp is missing or unparseable."""
    changed = _as_utc(password_changed_at)
    if changed is None:
        return None
    current = _as_utc(now) or datetime.now(UTC)
    return (current - changed).days


def is_expired(
    password_changed_at: datetime | str | None,
    max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    now: datetime | None = None,
) -> bool:
    """
    Password age check.

    max_age_days <= 0 disables the policy. A missing or unparseable timestamp
    counts as expired so the user is forced to reset.
    """
    if max_age_days <= 0:
        return False
    days = password_age_days(password_changed_at, now)
    if days is None:
        return True
    return days > max_age_days


def is_password_expired_for(
    role: str | None,
    password_changed_at: datetime | str | None,
    max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    now: datetime | None = None,
) -> bool:
    """is_expired with the system-admin exemption applied."""
    if normalize_role(role) == ROLE_SYSTEM_ADMIN:
        return False
    return is_expired(password_changed_at, max_age_days, now)
