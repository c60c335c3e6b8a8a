"""Booking-related Pydantic schemas."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app.utils.validators import contains_profanity, is_valid_time_of_day, sanitize_text


def _parse_event_time(value: time | str) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not is_valid_time_of_day(value):
        raise ValueError("event_time must be HH:MM (24h)")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class BookingCreate(BaseModel):
    """Schema for creating a booking. Amounts are never client-supplied."""

    chef_id: UUID
    event_date: date
    event_time: time
    party_size: int = Field(..., ge=1, le=50)
    duration_hours: int = Field(default=1, ge=1, le=12)
    event_address: str = Field(..., min_length=10, max_length=500)
    special_requests: str | None = Field(None, max_length=1000)
    dietary_requirements: list[str] = Field(default_factory=list, max_length=20)
    menu_preferences: list[str] = Field(default_factory=list, max_length=20)

    @field_validator("event_time", mode="before")
    @classmethod
    def validate_event_time(cls, v: time | str) -> time:
        return _parse_event_time(v)

    @field_validator("event_address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        cleaned = sanitize_text(v)
        if not cleaned:
            raise ValueError("event_address must not be empty")
        return cleaned

    @field_validator("special_requests")
    @classmethod
    def validate_special_requests(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if contains_profanity(v):
            raise ValueError("special_requests contains inappropriate language")
        return sanitize_text(v)


class BookingStatusUpdate(BaseModel):
    """Schema for PUT /bookings/{id}/status."""

    # Validated by the booking service after the caller is checked
    status: str = Field(..., min_length=1, max_length=20)


class BookingQuote(BaseModel):
    """Fee breakdown for a prospective booking."""

    chef_id: UUID
    event_date: date
    party_size: int
    duration_hours: int
    rate_per_guest: Decimal
    is_holiday: bool
    subtotal: Decimal
    service_fee: Decimal
    processing_fee: Decimal
    total: Decimal
    currency: str


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    chef_id: UUID

    # Schedule
    event_date: date
    event_time: time
    duration_hours: int
    party_size: int

    # Event details
    event_address: str
    special_requests: str | None
    dietary_requirements: list[str]
    menu_preferences: list[str]

    # Pricing
    rate_per_guest: Decimal
    is_holiday: bool
    subtotal: Decimal
    service_fee: Decimal
    processing_fee: Decimal
    total_amount: Decimal
    currency: str

    # Status
    status: str
    payment_status: str
    can_cancel: bool | None = None  # only set on detail reads

    # Timestamps
    confirmed_at: datetime | None
    declined_at: datetime | None
    cancelled_at: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @field_serializer("event_time")
    def serialize_event_time(self, v: time) -> str:
        return v.strftime("%H:%M")


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""

    bookings: list[BookingResponse]
    total: int
    page: int
    page_size: int
