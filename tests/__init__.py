"""Test package. Environment defaults must be set before any app.core import reads settings."""

import os

os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_SALT_ROUNDS", "4")
