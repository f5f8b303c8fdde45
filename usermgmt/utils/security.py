"""Security utilities: password hashing and JWT encoding."""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from jwt.exceptions import PyJWTError

# bcrypt only consumes the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash. A malformed digest never matches."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    data: dict,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 60,
    now: datetime | None = None,
) -> str:
    """Create a JWT access token carrying ``iat`` and ``exp`` claims."""
    issued_at = now or datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expires_minutes),
    })
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_access_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> dict | None:
    """Decode and validate a JWT token. Returns None on failure."""
    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[algorithm],
            options={"require": ["exp", "sub"]},
        )
    except PyJWTError:
        return None
