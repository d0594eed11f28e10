"""
Authentication dependencies for FastAPI.

``get_current_user`` protects every non-public route.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from carpool.app.core.exceptions import AuthenticationError, InsufficientPermissionsError
from carpool.app.core.jwt import decode_access_token
from carpool.app.core.token_revocation import is_token_revoked
from carpool.app.db.session import get_db
from carpool.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Resolve the caller from the bearer token.

    Checks, in order:
    1. Signature, expiry and required claims
    2. Token not revoked by logout
    3. User still exists (401) and is active (403)

    Returns:
        The token claims (``user_id``, ``email``, ``exp`` ...) plus the raw
        ``token`` so it can be revoked.
    """
    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    if await is_token_revoked(token):
        raise AuthenticationError("Token has been revoked")

    user = await db.get(User, payload["user_id"])
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise InsufficientPermissionsError("User account is inactive")

    return {**payload, "token": token}
