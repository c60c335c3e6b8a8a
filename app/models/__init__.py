"""Database models."""

from app.models.booking import Booking
from app.models.message import Conversation, Message, Notification
from app.models.payment import Payment
from app.models.post import ChefPost
from app.models.review import Review
from app.models.user import ChefImage, ChefProfile, User

__all__ = [
    # User
    "User",
    "ChefProfile",
    "ChefImage",
    # Booking
    "Booking",
    # Payment
    "Payment",
    # Chat
    "Conversation",
    "Message",
    "Notification",
    # Content
    "ChefPost",
    "Review",
]
