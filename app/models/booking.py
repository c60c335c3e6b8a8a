"""Booking database model."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.database import Base
from app.models.user import JSONColumn

ACTIVE_SLOT_PREDICATE = "status IN ('pending', 'confirmed')"


class Booking(Base):
    """A customer's request for a chef on a given date and time."""

    __tablename__ = "bookings"
    __table_args__ = (
        # At most one live booking per chef slot, enforced by the database
        Index(
            "uq_bookings_active_slot",
            "chef_id",
            "event_date",
            "event_time",
            unique=True,
            postgresql_where=text(ACTIVE_SLOT_PREDICATE),
            sqlite_where=text(ACTIVE_SLOT_PREDICATE),
        ),
        Index("ix_bookings_chef_date", "chef_id", "event_date"),
        CheckConstraint("party_size >= 1", name="ck_bookings_party_size_positive"),
        CheckConstraint("subtotal >= 0", name="ck_bookings_subtotal_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    chef_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )

    # Schedule
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_hours: Mapped[int] = mapped_column(Integer, default=1)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)

    # Event details
    event_address: Mapped[str] = mapped_column(Text, nullable=False)
    special_requests: Mapped[str | None] = mapped_column(Text)
    dietary_requirements: Mapped[list[str]] = mapped_column(JSONColumn, default=list)
    menu_preferences: Mapped[list[str]] = mapped_column(JSONColumn, default=list)

    # Pricing (ZAR, computed once at creation)
    rate_per_guest: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_holiday: Mapped[bool] = mapped_column(Boolean, default=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    service_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    processing_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="zar")

    # Status
    status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending, confirmed, declined, completed, cancelled
    payment_status: Mapped[str] = mapped_column(
        String(20), default="unpaid"
    )  # unpaid, paid, failed

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def event_start(self) -> datetime:
        return datetime.combine(self.event_date, self.event_time)
