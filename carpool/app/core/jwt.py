"""
JWT access tokens.

Tokens are HS256-signed and carry the user id twice: as the string ``sub``
claim and as the integer ``user_id`` claim used by the API.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from carpool.app.core.config import settings

REQUIRED_CLAIMS = ("sub", "user_id", "exp")


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign ``data`` with an ``exp`` claim added.

    Example payload:
        {
            "sub": "42",
            "user_id": 42,
            "email": "driver@example.com",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(user_id: int, email: str) -> str:
    return create_access_token({"sub": str(user_id), "user_id": user_id, "email": email})


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify signature and expiry and return the claims.

    Returns None for any invalid token, including one that verifies but
    lacks a claim the API relies on.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if any(claim not in payload for claim in REQUIRED_CLAIMS):
        return None
    if not isinstance(payload["user_id"], int) or payload["sub"] != str(payload["user_id"]):
        return None
    return payload
