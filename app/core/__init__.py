"""Core utilities and security modules."""

from app.core.exceptions import (
    AppException,
    AuthenticationError,
    Conflict,
    DependencyFailure,
    ExternalServiceError,
    InvalidRequest,
    NotFoundError,
    PaymentError,
    PermissionDenied,
    RateLimitExceeded,
    ValidationError,
)
from app.core.security import (
    create_access_token,
    create_refresh_token,
    create_tokens,
    get_password_hash,
    verify_password,
    verify_token,
)

__all__ = [
    "AppException",
    "AuthenticationError",
    "Conflict",
    "DependencyFailure",
    "ExternalServiceError",
    "InvalidRequest",
    "NotFoundError",
    "PaymentError",
    "PermissionDenied",
    "RateLimitExceeded",
    "ValidationError",
    "create_access_token",
    "create_refresh_token",
    "create_tokens",
    "get_password_hash",
    "verify_password",
    "verify_token",
]
