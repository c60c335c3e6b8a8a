"""Password hashing and JWT issuance for customers and chefs."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings
from app.core.exceptions import AuthenticationError

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _encode(data: dict[str, Any], token_type: str, lifetime: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(UTC) + lifetime, "type": token_type})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    return _encode(
        data,
        "access",
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a JWT refresh token."""
    return _encode(
        data,
        "refresh",
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def verify_token(token: str, token_type: str = "access") -> dict[str, Any]:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise AuthenticationError(f"Token validation failed: {str(e)}")
    if payload.get("type") != token_type:
        raise AuthenticationError("Invalid token type")
    return payload


def create_tokens(user_id: str, email: str, role: str) -> dict[str, str]:
    """Create both access and refresh tokens for a user."""
    token_data = {"sub": user_id, "email": email, "role": role}
    return {
        "access_token": create_access_token(token_data),
        "refresh_token": create_refresh_token(token_data),
        "token_type": "bearer",
    }
