"""
Password hashing and signed tokens.

Access tokens identify the caller. CSRF tokens are a second, short-lived
token bound to the same user that every mutating studio call must echo
back in the X-CSRF-Token header.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from core.config import (
    JWT_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    CSRF_TOKEN_EXPIRE_MINUTES,
)

ACCESS_TOKEN_TYPE = "access"
CSRF_TOKEN_TYPE = "csrf"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed_password.encode())


def _encode(data: dict, token_type: str, expire_minutes: int) -> str:
    payload = data.copy()
    payload["typ"] = token_type
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def _decode(token: str, token_type: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    if payload.get("typ") != token_type:
        return None
    return payload


def create_access_token(data: dict) -> str:
    return _encode(data, ACCESS_TOKEN_TYPE, ACCESS_TOKEN_EXPIRE_MINUTES)


def decode_access_token(token: str) -> Optional[dict]:
    return _decode(token, ACCESS_TOKEN_TYPE)


def create_csrf_token(user_id: str) -> str:
    return _encode({"sub": user_id}, CSRF_TOKEN_TYPE, CSRF_TOKEN_EXPIRE_MINUTES)


def verify_csrf_token(token: Optional[str], user_id: str) -> bool:
    """True only for an unexpired CSRF token issued to `user_id`."""
    if not token:
        return False
    payload = _decode(token, CSRF_TOKEN_TYPE)
    return payload is not None and payload.get("sub") == user_id
