"""
Password hashing (bcrypt via passlib) and session token handling (JWT).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from resumecraft.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_access_token(
    *,
    user_id: int,
    email: str,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Issue a signed session token.

    The subject claim carries the user id as a string; the email is
    informational only and never used for lookup.
    """
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.session_ttl_min))
    payload = {"sub": str(user_id), "email": email, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict[str, Any] | None:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except InvalidTokenError:
        return None


def user_id_from_token(token: str, settings: Settings) -> int | None:
    payload = decode_access_token(token, settings)
    if payload is None:
        return None
    try:
        return int(payload.get("sub", ""))
    except (TypeError, ValueError):
        return None
