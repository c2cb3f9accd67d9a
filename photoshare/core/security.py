"""Password hashing and organizer session tokens."""

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from photoshare.core.config import get_settings

settings = get_settings()

PLAIN_PREFIX = "$plain$"
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a login password against the stored hash.

    Hashes prefixed with ``$plain$`` hold a SHA-256 hex digest and are only
    created by test fixtures.
    """
    if hashed_password.startswith(PLAIN_PREFIX):
        digest = hashlib.sha256(plain_password.encode()).hexdigest()
        return hmac.compare_digest(digest, hashed_password[len(PLAIN_PREFIX):])

    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=12)).decode("utf-8")


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Sign organizer claims (``sub`` is the user id) with an expiry."""
    lifetime = expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Verified claims of a token, None when invalid or expired."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def token_user_id(token: str) -> int | None:
    """User id carried by a valid token."""
    payload = decode_access_token(token)
    if not payload:
        return None
    try:
        return int(payload.get("sub", ""))
    except (TypeError, ValueError):
        return None
