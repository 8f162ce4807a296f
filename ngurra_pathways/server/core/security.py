"""
Password hashing and opaque token helpers.

Passwords are hashed with bcrypt, which only accepts up to
``MAX_PASSWORD_BYTES`` of UTF-8 input. Registration rejects longer passwords
with a 422 and verification treats them as a mismatch. Session tokens are
random URL-safe strings; only their SHA-256 digests are persisted, so a leaked
table cannot be replayed.
"""

import hashlib
import secrets

import bcrypt

from ngurra_pathways.core.errors import BadRequestError
from ngurra_pathways.core.models.io.users import MAX_PASSWORD_BYTES

from .config import settings


def _password_bytes(password: str) -> bytes | None:
    encoded = password.encode("utf-8")
    return encoded if len(encoded) <= MAX_PASSWORD_BYTES else None


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt at the configured cost.

    Raises:
        BadRequestError: The password is longer than bcrypt accepts
    """
    encoded = _password_bytes(password)
    if encoded is None:
        raise BadRequestError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    encoded = _password_bytes(password)
    if encoded is None:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def generate_token() -> str:
    """Random URL-safe token with 256 bits of entropy."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Stable digest used to look tokens up."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
