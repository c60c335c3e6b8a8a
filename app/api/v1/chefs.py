"""Chef discovery, profile and availability endpoints."""

import logging
from datetime import date
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_chef, get_db
from app.config import settings
from app.core.exceptions import InvalidRequest
from app.models.user import ChefImage, User
from app.schemas.user import (
    ChefImageResponse,
    ChefListResponse,
    ChefProfileUpdate,
    ChefResponse,
    ChefStatsResponse,
)
from app.services.booking_service import booking_service
from app.services.chef_service import chef_service, to_chef_response
from app.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter()

SortOption = Literal["rating", "price_low", "price_high"]


@router.get("/", response_model=ChefListResponse)
async def list_chefs(
    db: Annotated[AsyncSession, Depends(get_db)],
    region: str | None = None,
    specialty: str | None = None,
    min_rate: Annotated[Decimal | None, Query(ge=0)] = None,
    max_rate: Annotated[Decimal | None, Query(ge=0)] = None,
    sort_by: SortOption = "rating",
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ChefListResponse:
    """List verified chefs with optional filters."""
    rows, total = await chef_service.search(
        db,
        region=region,
        specialty=specialty,
        min_rate=min_rate,
        max_rate=max_rate,
        sort_by=sort_by,
        page=page,
        page_size=page_size,
    )
    return ChefListResponse(
        chefs=[to_chef_response(user, profile) for user, profile in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/search", response_model=ChefListResponse)
async def search_chefs(
    db: Annotated[AsyncSession, Depends(get_db)],
    city: str | None = None,
    dietary: str | None = None,
    sort_by: SortOption = "rating",
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ChefListResponse:
    """Search chefs by city and dietary specialty."""
    rows, total = await chef_service.search(
        db, city=city, specialty=dietary, sort_by=sort_by, page=page, page_size=page_size
    )
    return ChefListResponse(
        chefs=[to_chef_response(user, profile) for user, profile in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.patch("/me", response_model=ChefResponse)
async def update_my_profile(
    updates: ChefProfileUpdate,
    current_user: Annotated[User, Depends(get_current_chef)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ChefResponse:
    """Update the calling chef's profile."""
    profile = await chef_service.update_profile(db, current_user.id, updates)
    return to_chef_response(current_user, profile)


@router.get("/me/stats", response_model=ChefStatsResponse)
async def get_my_stats(
    current_user: Annotated[User, Depends(get_current_chef)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ChefStatsResponse:
    """Dashboard statistics for the calling chef."""
    today = booking_service.now().date()
    return ChefStatsResponse(**await chef_service.stats(db, current_user.id, today))


@router.get("/me/images", response_model=list[ChefImageResponse])
async def list_my_images(
    current_user: Annotated[User, Depends(get_current_chef)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[ChefImage]:
    result = await db.execute(
        select(ChefImage)
        .where(ChefImage.chef_id == current_user.id)
        .order_by(ChefImage.created_at.desc())
    )
    return list(result.scalars().all())


@router.post("/me/images", response_model=ChefImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    current_user: Annotated[User, Depends(get_current_chef)],
    db: Annotated[AsyncSession, Depends(get_db)],
    file: UploadFile = File(...),
) -> ChefImage:
    """Upload a portfolio image (JPEG, PNG or WEBP, min 300x300, max 5MB)."""
    count = (await db.execute(
        select(func.count(ChefImage.id)).where(ChefImage.chef_id == current_user.id)
    )).scalar() or 0
    if count >= settings.max_images_per_chef:
        raise InvalidRequest(f"A chef may have at most {settings.max_images_per_chef} images")

    data = await file.read()
    width, height = storage_service.validate_image(data, file.content_type)
    url, key = await storage_service.upload_chef_image(current_user.id, data, file.content_type)

    image = ChefImage(chef_id=current_user.id, url=url, storage_key=key, width=width, height=height)
    db.add(image)
    await db.flush()
    await db.refresh(image)
    logger.info(f"Chef {current_user.id} uploaded image {key} ({width}x{height})")
    return image


@router.get("/{chef_id}", response_model=ChefResponse)
async def get_chef(
    chef_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ChefResponse:
    """Get a chef's public profile."""
    user, profile = await chef_service.get_public(db, chef_id)
    return to_chef_response(user, profile)


@router.get("/{chef_id}/availability", response_model=list[str])
async def get_availability(
    chef_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    on_date: Annotated[date, Query(alias="date")],
) -> list[str]:
    """Free HH:MM slots for a chef on a date."""
    return await booking_service.get_availability(db, chef_id, on_date)
