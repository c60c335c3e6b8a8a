"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import (
    auth,
    bookings,
    chefs,
    messages,
    notifications,
    payments,
    posts,
    reference,
    reviews,
    webhooks,
)

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Chefs
api_router.include_router(chefs.router, prefix="/chefs", tags=["Chefs"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Payments
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# Messages
api_router.include_router(messages.router, prefix="/conversations", tags=["Messages"])

# Notifications
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

# Posts
api_router.include_router(posts.router, prefix="/posts", tags=["Posts"])

# Reviews
api_router.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])

# Reference data
api_router.include_router(reference.router, prefix="/reference", tags=["Reference"])

# Webhooks
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
