"""Booking endpoints."""

from datetime import date
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_actor, get_db
from app.core.middleware import booking_limiter
from app.domain.actor import Actor
from app.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingQuote,
    BookingResponse,
    BookingStatusUpdate,
)
from app.services.booking_service import booking_service

router = APIRouter()


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_limiter)],
)
async def create_booking(
    booking_data: BookingCreate,
    actor: Annotated[Actor, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingResponse:
    """Request a booking with a chef. Starts as pending."""
    booking = await booking_service.create(db, booking_data, actor)
    return BookingResponse.model_validate(booking)


@router.get("/", response_model=BookingListResponse)
async def get_my_bookings(
    actor: Annotated[Actor, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: Annotated[
        Literal["pending", "confirmed", "declined", "completed", "cancelled"] | None,
        Query(alias="status"),
    ] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> BookingListResponse:
    """Bookings where the caller is the customer or the chef."""
    bookings, total = await booking_service.list_for_actor(
        db, actor, status_filter, page, page_size
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/quote", response_model=BookingQuote)
async def quote_booking(
    db: Annotated[AsyncSession, Depends(get_db)],
    chef_id: UUID,
    event_date: date,
    party_size: Annotated[int, Query(ge=1, le=50)],
    duration_hours: Annotated[int, Query(ge=1, le=12)] = 1,
) -> BookingQuote:
    """Fee breakdown for a prospective booking. Nothing is saved."""
    return BookingQuote(
        **await booking_service.quote(db, chef_id, event_date, party_size, duration_hours)
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    actor: Annotated[Actor, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingResponse:
    """Get booking details. Only the customer and chef may read it."""
    booking = await booking_service.get_booking_for(db, booking_id, actor)
    response = BookingResponse.model_validate(booking)
    response.can_cancel = booking_service.can_cancel(booking)
    return response


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: UUID,
    update: BookingStatusUpdate,
    actor: Annotated[Actor, Depends(get_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingResponse:
    """Confirm, decline, complete or cancel a booking."""
    booking = await booking_service.transition_status(db, booking_id, update.status, actor)
    return BookingResponse.model_validate(booking)
