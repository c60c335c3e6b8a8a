"""Messaging-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.validators import sanitize_text


class MessageCreate(BaseModel):
    """Schema for sending a message."""

    content: str = Field(..., min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def sanitize_content(cls, v: str) -> str:
        return sanitize_text(v) or v


class ConversationCreate(BaseModel):
    """Open a thread with the other party; customers name a chef, chefs a customer."""

    participant_id: UUID
    booking_id: UUID | None = None
    message: MessageCreate | None = None


class MessageResponse(BaseModel):
    """Schema for message response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    message_type: str
    is_read: bool
    read_at: datetime | None
    created_at: datetime


class ConversationResponse(BaseModel):
    """Schema for conversation response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    chef_id: UUID
    booking_id: UUID | None
    last_message_at: datetime | None
    created_at: datetime
    unread_count: int = 0


class ConversationListResponse(BaseModel):
    """Schema for paginated conversation list."""

    conversations: list[ConversationResponse]
    total: int
    page: int
    page_size: int


class ConversationMessagesResponse(BaseModel):
    """Schema for conversation messages response."""

    conversation: ConversationResponse
    messages: list[MessageResponse]
    total: int
    page: int
    page_size: int


class NotificationResponse(BaseModel):
    """Schema for notification response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    body: str
    notification_type: str
    booking_id: UUID | None
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    unread_count: int
    page: int
    page_size: int
