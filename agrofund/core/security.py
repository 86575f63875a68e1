"""
Password hashing and bearer-token primitives.

Passwords are hashed with bcrypt.  Bearer tokens are random URL-safe strings
handed to the client exactly once; the database only ever sees their SHA-256
digest, so a leaked token table cannot be replayed.
"""

import hashlib
import secrets

import bcrypt

from agrofund.core.config import settings

# bcrypt only looks at the first 72 bytes of its input.
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Return a bcrypt hash suitable for ``User.password_hash``."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_token() -> str:
    """Generate a new opaque bearer token."""
    return secrets.token_urlsafe(40)


def hash_token(token: str) -> str:
    """Digest stored in ``personal_access_tokens.token_hash``."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
