"""Pydantic schemas for API validation."""

from app.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingQuote,
    BookingResponse,
    BookingStatusUpdate,
)
from app.schemas.message import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from app.schemas.payment import PaymentIntentCreate, PaymentIntentResponse
from app.schemas.post import PostCreate, PostResponse
from app.schemas.review import ReviewCreate, ReviewResponse
from app.schemas.user import (
    ChefCreate,
    ChefProfileUpdate,
    ChefResponse,
    CustomerCreate,
    TokenResponse,
    UserLogin,
    UserResponse,
)

__all__ = [
    "BookingCreate",
    "BookingListResponse",
    "BookingQuote",
    "BookingResponse",
    "BookingStatusUpdate",
    "ChefCreate",
    "ChefProfileUpdate",
    "ChefResponse",
    "ConversationCreate",
    "ConversationResponse",
    "CustomerCreate",
    "MessageCreate",
    "MessageResponse",
    "PaymentIntentCreate",
    "PaymentIntentResponse",
    "PostCreate",
    "PostResponse",
    "ReviewCreate",
    "ReviewResponse",
    "TokenResponse",
    "UserLogin",
    "UserResponse",
]
