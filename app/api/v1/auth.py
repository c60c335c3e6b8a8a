"""Authentication endpoints."""

import logging
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.middleware import login_limiter, register_limiter
from app.core.security import (
    create_tokens,
    get_password_hash,
    verify_password,
    verify_token,
)
from app.domain.actor import CHEF, CUSTOMER
from app.models.user import ChefProfile, User
from app.schemas.user import (
    ChefCreate,
    CustomerCreate,
    RefreshTokenRequest,
    TokenResponse,
    UserLogin,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _create_user(db: AsyncSession, user_data: CustomerCreate, role: str) -> User:
    """Insert a user after checking email and phone are free."""
    result = await db.execute(select(User).where(User.email == user_data.email.lower()))
    if result.scalar_one_or_none():
        raise ValidationError("Email already registered")

    if user_data.phone:
        result = await db.execute(select(User).where(User.phone == user_data.phone))
        if result.scalar_one_or_none():
            raise ValidationError("Phone number already registered")

    user = User(
        email=user_data.email.lower(),
        phone=user_data.phone,
        password_hash=get_password_hash(user_data.password),
        role=role,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        city=user_data.city,
        # Customers are usable immediately; chefs are vetted first
        is_verified=role == CUSTOMER,
    )
    db.add(user)
    await db.flush()
    return user


@router.post(
    "/register/customer",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_limiter)],
)
async def register_customer(
    user_data: CustomerCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Register a new customer account."""
    user = await _create_user(db, user_data, CUSTOMER)
    logger.info(f"Customer registered: {user.id}")
    return TokenResponse(**create_tokens(str(user.id), user.email, user.role))


@router.post(
    "/register/chef",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_limiter)],
)
async def register_chef(
    chef_data: ChefCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Register a new chef account with its profile."""
    user = await _create_user(db, chef_data, CHEF)
    db.add(
        ChefProfile(
            user_id=user.id,
            bio=chef_data.bio,
            base_rate=chef_data.base_rate,
            regions_served=chef_data.regions_served,
            dietary_specialties=chef_data.dietary_specialties,
        )
    )
    await db.flush()
    logger.info(f"Chef registered, pending verification: {user.id}")
    return TokenResponse(**create_tokens(str(user.id), user.email, user.role))


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(login_limiter)])
async def login(
    credentials: UserLogin,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Login with email and password."""
    result = await db.execute(select(User).where(User.email == credentials.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    user.last_login_at = datetime.now(UTC)

    tokens = create_tokens(str(user.id), user.email, user.role)
    return TokenResponse(**tokens)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshTokenRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Refresh access token using refresh token."""
    payload = verify_token(request.refresh_token, token_type="refresh")
    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise AuthenticationError("Invalid token")

    # Verify user still exists and is active
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    tokens = create_tokens(str(user.id), user.email, user.role)
    return TokenResponse(**tokens)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> User:
    """Get the current user's account."""
    return current_user
