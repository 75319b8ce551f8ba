"""Access/refresh token issuance and verification (JWT, HMAC).

Access tokens verify against an ordered key ring so that tokens issued under an
older secret variable name keep working after the variable is renamed. Keys are
tried in a fixed order (primary, aliases, dev fallback); the first match wins.
Signing always uses the first key in the ring.
"""

import enum
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Sequence

import jwt

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEV_ACCESS_SECRET = "dev_access_secret_change_me"
DEV_REFRESH_SECRET = "dev_refresh_secret_change_me"

# Substrings that mark a secret as a development placeholder.
DEV_SECRET_MARKERS = ("dev_", "change_me", "change-me")

# Env var names in verification order; the first entry is the primary name.
ACCESS_SECRET_NAMES = ("JWT_ACCESS_SECRET", "JWT_SECRET", "ACCESS_SECRET")
REFRESH_SECRET_NAMES = ("JWT_REFRESH_SECRET", "REFRESH_SECRET")

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$", re.IGNORECASE)
_DURATION_UNITS: dict[str, float] = {
    "": 1,
    "ms": 0.001,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}


def parse_duration(value: str | int | float) -> timedelta:
    """
    Parse an expiry such as "30m", "12h", "7d", "45s" or a bare number of seconds.
    Raises ValueError for anything else.
    """
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration {value!r}; expected e.g. '30m', '12h', '7d' or seconds")
    amount, unit = match.groups()
    unit = unit.lower()
    if unit not in _DURATION_UNITS:
        raise ValueError(f"Invalid duration unit {unit!r} in {value!r}")
    return timedelta(seconds=float(amount) * _DURATION_UNITS[unit])


class KeySource(str, enum.Enum):
    PRIMARY = "primary"
    ALIAS = "alias"
    DEV = "dev"


@dataclass(frozen=True)
class SecretKey:
    """One candidate signing secret and where it came from."""

    value: str
    source: KeySource
    name: str

    def __repr__(self) -> str:
        return f"SecretKey(name={self.name!r}, source={self.source.value!r})"

    @property
    def looks_like_placeholder(self) -> bool:
        lowered = self.value.lower()
        return any(marker in lowered for marker in DEV_SECRET_MARKERS)


class TokenError(Exception):
    """Base class for token verification failures."""

    code = "INVALID_ACCESS"


class TokenExpiredError(TokenError):
    code = "EXPIRED_ACCESS"


class TokenInvalidError(TokenError):
    code = "INVALID_ACCESS"


class InsecureSecretError(RuntimeError):
    """Raised at startup when production would run with a guessable secret."""


class TokenService:
    """Signs and verifies access and refresh tokens with fixed key material."""

    def __init__(
        self,
        access_keys: Sequence[SecretKey],
        refresh_keys: Sequence[SecretKey],
        access_ttl: timedelta = timedelta(minutes=30),
        refresh_ttl: timedelta = timedelta(minutes=30),
        algorithm: str = "HS256",
    ) -> None:
        self.access_keys: tuple[SecretKey, ...] = tuple(access_keys)
        self.refresh_keys: tuple[SecretKey, ...] = tuple(refresh_keys)
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm

    def sign_access(self, claims: dict[str, Any]) -> str:
        """Sign an access token with the primary access key."""
        return self._sign(claims, self.access_keys, self.access_ttl)

    def sign_refresh(self, claims: dict[str, Any]) -> str:
        """Sign a refresh token with the refresh key."""
        return self._sign(claims, self.refresh_keys, self.refresh_ttl)

    def verify_access(self, token: str) -> dict[str, Any]:
        """
        Verify against each access key in order and return the claims of the first match.
        Raises TokenExpiredError or TokenInvalidError.
        """
        return self._verify(token, self.access_keys)

    def verify_refresh(self, token: str) -> dict[str, Any]:
        """Verify a refresh token. Raises TokenExpiredError or TokenInvalidError."""
        return self._verify(token, self.refresh_keys)

    def _sign(
        self, claims: dict[str, Any], keys: tuple[SecretKey, ...], ttl: timedelta
    ) -> str:
        if not keys:
            raise RuntimeError("No signing secret configured")
        now = datetime.now(UTC)
        payload = {
            k: v for k, v in claims.items() if k not in ("iat", "exp", "nbf")
        }
        payload["iat"] = now
        payload["exp"] = now + ttl
        return jwt.encode(payload, keys[0].value, algorithm=self.algorithm)

    def _verify(self, token: str, keys: tuple[SecretKey, ...]) -> dict[str, Any]:
        last_error: Exception | None = None
        for key in keys:
            try:
                return jwt.decode(
                    token,
                    key.value,
                    algorithms=[self.algorithm],
                    options={"require": ["exp", "iat"]},
                )
            except jwt.ExpiredSignatureError as e:
                # The signature matched this key, so no later key can do better.
                raise TokenExpiredError("Token has expired") from e
            except jwt.InvalidTokenError as e:
                last_error = e
        if last_error is None:
            raise TokenInvalidError("No token secret configured")
        raise TokenInvalidError("Invalid token") from last_error


def _configured_keys(settings: "Settings", names: Sequence[str]) -> list[SecretKey]:
    keys: list[SecretKey] = []
    for i, name in enumerate(names):
        secret = getattr(settings, name)
        if secret is None:
            continue
        keys.append(
            SecretKey(
                value=secret.get_secret_value(),
                source=KeySource.PRIMARY if i == 0 else KeySource.ALIAS,
                name=name,
            )
        )
    return keys


def build_access_keys(settings: "Settings") -> list[SecretKey]:
    """Ordered access key ring; the dev fallback is appended outside production."""
    keys = _configured_keys(settings, ACCESS_SECRET_NAMES)
    if not settings.is_production:
        keys.append(SecretKey(DEV_ACCESS_SECRET, KeySource.DEV, "dev fallback"))
    return keys


def build_refresh_keys(settings: "Settings") -> list[SecretKey]:
    """Single refresh key: the first configured name, else the dev fallback."""
    keys = _configured_keys(settings, REFRESH_SECRET_NAMES)
    if not keys and not settings.is_production:
        keys.append(SecretKey(DEV_REFRESH_SECRET, KeySource.DEV, "dev fallback"))
    return keys[:1]


def check_production_secrets(
    access_keys: Sequence[SecretKey], refresh_keys: Sequence[SecretKey]
) -> None:
    """Refuse to run in production with missing or placeholder secrets."""
    if not access_keys:
        raise InsecureSecretError(
            "No access token secret configured; set JWT_ACCESS_SECRET in production."
        )
    if not refresh_keys:
        raise InsecureSecretError(
            "No refresh token secret configured; set JWT_REFRESH_SECRET in production."
        )
    for key in (*access_keys, *refresh_keys):
        if key.source is KeySource.DEV or key.looks_like_placeholder:
            raise InsecureSecretError(
                f"Refusing to start with a development JWT secret in production ({key.name})."
            )


def build_token_service(settings: "Settings") -> TokenService:
    """Build the process-wide TokenService from settings, enforcing the production guard."""
    access_keys = build_access_keys(settings)
    refresh_keys = build_refresh_keys(settings)
    if settings.is_production:
        check_production_secrets(access_keys, refresh_keys)
    elif access_keys[0].source is KeySource.DEV:
        logger.warning(
            "No JWT access secret configured; signing with the development fallback secret."
        )
    logger.info(
        "Token service configured",
        extra={
            "access_keys": [f"{k.name}:{k.source.value}" for k in access_keys],
            "refresh_key": refresh_keys[0].name if refresh_keys else None,
        },
    )
    return TokenService(
        access_keys=access_keys,
        refresh_keys=refresh_keys,
        access_ttl=parse_duration(settings.JWT_ACCESS_EXPIRES),
        refresh_ttl=parse_duration(settings.JWT_REFRESH_EXPIRES),
        algorithm=settings.JWT_ALGORITHM,
    )
