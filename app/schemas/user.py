"""User, auth and chef profile Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.utils.validators import normalize_sa_phone, sanitize_text, validate_password_strength


class UserBase(BaseModel):
    """Base user schema."""

    email: EmailStr
    phone: str | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=100)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        normalized = normalize_sa_phone(v)
        if not (normalized.startswith("+27") and len(normalized) == 12 and normalized[1:].isdigit()):
            raise ValueError("Phone must be a South African number, e.g. +27821234567")
        return normalized


class CustomerCreate(UserBase):
    """Schema for customer registration."""

    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_strength(v)


class ChefCreate(CustomerCreate):
    """Schema for chef registration."""

    bio: str = Field(..., min_length=50, max_length=1000)
    base_rate: Decimal = Field(..., ge=100, le=5000, decimal_places=2)
    regions_served: list[str] = Field(default_factory=list, max_length=20)
    dietary_specialties: list[str] = Field(default_factory=list, max_length=20)

    @field_validator("bio")
    @classmethod
    def sanitize_bio(cls, v: str) -> str:
        return sanitize_text(v) or v


class UserLogin(BaseModel):
    """Schema for user login."""

    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    """Schema for token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    phone: str | None
    role: str
    first_name: str | None
    last_name: str | None
    city: str | None
    profile_photo_url: str | None
    is_active: bool
    is_verified: bool
    created_at: datetime


class ChefProfileUpdate(BaseModel):
    """Fields a chef may change on their own profile."""

    bio: str | None = Field(None, min_length=50, max_length=1000)
    work_history: str | None = Field(None, max_length=2000)
    regions_served: list[str] | None = Field(None, max_length=20)
    max_travel_distance: int | None = Field(None, ge=0, le=500)
    dietary_specialties: list[str] | None = Field(None, max_length=20)
    holiday_rate_multiplier: Decimal | None = Field(None, ge=1, le=5, decimal_places=2)
    base_rate: Decimal | None = Field(None, ge=100, le=5000, decimal_places=2)

    @field_validator("bio", "work_history")
    @classmethod
    def sanitize(cls, v: str | None) -> str | None:
        return sanitize_text(v)


class ChefResponse(BaseModel):
    """Public chef card: user fields joined with the chef profile."""

    id: UUID
    first_name: str | None
    last_name: str | None
    city: str | None
    profile_photo_url: str | None
    is_verified: bool

    bio: str | None
    work_history: str | None
    regions_served: list[str]
    dietary_specialties: list[str]
    max_travel_distance: int
    base_rate: Decimal
    holiday_rate_multiplier: Decimal

    # Only shown once a chef has enough reviews
    average_rating: Decimal | None
    total_reviews: int


class ChefListResponse(BaseModel):
    """Schema for paginated chef list."""

    chefs: list[ChefResponse]
    total: int
    page: int
    page_size: int


class ChefStatsResponse(BaseModel):
    total_bookings: int
    upcoming_bookings: int
    completed_bookings: int
    pending_requests: int
    total_revenue: Decimal
    revenue_this_month: Decimal
    average_rating: Decimal
    total_reviews: int
    total_posts: int


class ChefImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    url: str
    width: int
    height: int
    created_at: datetime
