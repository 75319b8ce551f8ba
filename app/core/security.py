"""Password hashing and verification (bcrypt)."""

import bcrypt

from app.core.config import settings

# Matches users.username (String(255)).
USERNAME_MAX_LEN = 255

CANONICAL_BCRYPT_PREFIX = "$2b$"
# Prefix tags written by other bcrypt implementations (PHP, older libraries); same algorithm.
LEGACY_BCRYPT_PREFIXES = ("$2y$", "$2a$")


def _to_bytes(plain_password: str) -> bytes:
    # bcrypt only uses the first 72 bytes; newer releases raise instead of truncating.
    return plain_password.encode("utf-8")[:72]


def normalize_hash(hashed: str) -> str:
    """Rewrite a legacy $2y$/$2a$ prefix to the canonical $2b$ tag."""
    if not hashed:
        return hashed
    for prefix in LEGACY_BCRYPT_PREFIXES:
        if hashed.startswith(prefix):
            return CANONICAL_BCRYPT_PREFIX + hashed[len(prefix):]
    return hashed


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    cost = rounds if rounds is not None else settings.BCRYPT_SALT_ROUNDS
    return bcrypt.hashpw(_to_bytes(plain_password), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """
    Verify a plain password against a stored hash.

    Returns False on mismatch. A malformed stored hash raises ValueError.
    """
    if not hashed:
        raise ValueError("Stored password hash is empty")
    return bcrypt.checkpw(_to_bytes(plain_password), normalize_hash(hashed).encode("utf-8"))
