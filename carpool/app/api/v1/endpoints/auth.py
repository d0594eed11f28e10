"""
Authentication API endpoints.

Provides register, login, logout and user info endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from carpool.app.db.session import get_db
from carpool.app.models.user import User
from carpool.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse, UserSummary
from carpool.app.schemas.common import MessageResponse
from carpool.app.core.exceptions import AuthenticationError, ConflictError
from carpool.app.core.security import get_password_hash, verify_password
from carpool.app.core.jwt import create_user_token
from carpool.app.core.dependencies import get_current_user
from carpool.app.core.rate_limit import auth_rate_limit, limiter
from carpool.app.core.token_revocation import revoke_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_user_token(user.id, user.email),
        token_type="bearer",
        user=UserSummary.model_validate(user),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(auth_rate_limit)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user and log them in.

    Raises:
        409: Email already registered
    """
    email = user_data.email.lower()
    result = await db.execute(select(User.id).where(User.email == email))
    if result.first() is not None:
        raise ConflictError("Email already registered")

    new_user = User(
        email=email,
        name=user_data.name.strip(),
        hashed_password=get_password_hash(user_data.password),
        is_active=True,
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already registered")
    await db.refresh(new_user)

    logger.info("User %s registered", new_user.id)
    return _token_response(new_user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(auth_rate_limit)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Unknown email and wrong password produce the same 401.
    """
    result = await db.execute(select(User).where(User.email == credentials.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login for %s", credentials.email)
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    return _token_response(user)


async def read_current_user(current_user: dict, db: AsyncSession) -> UserResponse:
    user = await db.get(User, current_user["user_id"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Requires valid JWT token in Authorization header.
    """
    return await read_current_user(current_user, db)


@router.post("/logout", response_model=MessageResponse)
async def logout(current_user: dict = Depends(get_current_user)):
    """
    Revoke the presented token.

    The token is rejected by every protected route until it would have
    expired anyway.
    """
    await revoke_token(current_user["token"], current_user["user_id"], expires_at=current_user.get("exp"))
    logger.info("User %s logged out", current_user["user_id"])
    return MessageResponse(message="Logged out")
