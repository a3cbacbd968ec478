"""Password hashing."""

from __future__ import annotations

import bcrypt

from clientscope.config.settings import get_settings


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with the configured cost factor."""
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed hash in the database
        return False
