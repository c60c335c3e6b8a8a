"""API dependencies for authentication and common operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, PermissionDenied
from app.core.security import verify_token
from app.database import get_db
from app.domain.actor import CHEF, CUSTOMER, Actor
from app.models.user import User

__all__ = [
    "active_user_from_token",
    "get_actor",
    "get_current_active_user",
    "get_current_chef",
    "get_current_customer",
    "get_current_user",
    "get_db",
]

# Security scheme
security = HTTPBearer(auto_error=False)


async def _user_from_token(db: AsyncSession, token: str) -> User:
    payload = verify_token(token, token_type="access")
    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise AuthenticationError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("User not found")
    return user


async def active_user_from_token(db: AsyncSession, token: str) -> User:
    """Resolve a raw access token to a live, active account.

    The chat WebSocket authenticates with this since it cannot use the
    bearer scheme.
    """
    user = await _user_from_token(db, token)
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    if not credentials:
        raise AuthenticationError("Missing bearer token")
    return await _user_from_token(db, credentials.credentials)


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current user and verify they are active."""
    if not current_user.is_active:
        raise AuthenticationError("User account is deactivated")
    return current_user


async def get_current_customer(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> User:
    """Get current user and verify they are a customer."""
    if current_user.role != CUSTOMER:
        raise PermissionDenied("Customer access required")
    return current_user


async def get_current_chef(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> User:
    """Get current user and verify they are a chef."""
    if current_user.role != CHEF:
        raise PermissionDenied("Chef access required")
    return current_user


async def get_actor(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> Actor:
    """Identity and role of the caller, as passed to the booking service."""
    return Actor(id=current_user.id, role=current_user.role)

