"""Custom middleware for the application."""

import logging
import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

import redis.asyncio as redis

from app.config import settings
from app.core.exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)

# Paths never counted against the global limit
UNLIMITED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


def client_ip(request: Request) -> str:
    """Extract client IP from request."""
    # Check for forwarded headers (behind proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


async def _hit(redis_client: redis.Redis, key: str, window_seconds: int) -> int:
    """Record a request in a sliding window and return the count before it."""
    now = time.time()
    async with redis_client.pipeline(transaction=True) as pipe:
        await pipe.zremrangebyscore(key, 0, now - window_seconds)
        await pipe.zcard(key)
        await pipe.zadd(key, {uuid.uuid4().hex: now})
        await pipe.expire(key, window_seconds)
        results = await pipe.execute()
    return results[1]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware using Redis sliding window."""

    def __init__(
        self,
        app,
        max_requests: int = 100,
        window_seconds: int = 900,
        redis_url: str | None = None,
    ):
        """Initialize rate limiter.

        Args:
            app: FastAPI application
            max_requests: Max requests per window per IP
            window_seconds: Window length in seconds
            redis_url: Redis connection URL
        """
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.redis_url = redis_url or settings.redis_url
        self._redis: redis.Redis | None = None

    async def get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        try:
            redis_client = await self.get_redis()
            key = f"rate_limit:{client_ip(request)}"
            request_count = await _hit(redis_client, key, self.window_seconds)
        except redis.RedisError as e:
            # If Redis is down, allow request through
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return await call_next(request)

        reset_at = str(int(time.time()) + self.window_seconds)
        if request_count >= self.max_requests:
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Too many requests. Please try again later.",
                    "code": RateLimitExceeded.code,
                },
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Limit": str(self.max_requests),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": reset_at,
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(
            max(0, self.max_requests - request_count - 1)
        )
        response.headers["X-RateLimit-Reset"] = reset_at
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and response times."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        message = (
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {duration:.3f}s [{request_id}]"
        )
        if duration > 1.0:
            logger.warning(f"SLOW REQUEST: {message}")
        else:
            logger.info(message)

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if not settings.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RateLimiter:
    """Per-endpoint rate limiter used as a dependency."""

    def __init__(
        self,
        requests_per_minute: int = 10,
        key_prefix: str = "api",
    ):
        self.requests_per_minute = requests_per_minute
        self.key_prefix = key_prefix
        self._redis: redis.Redis | None = None

    async def get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def __call__(self, request: Request) -> None:
        """Check rate limit for request.

        Raises:
            RateLimitExceeded: If rate limit exceeded
        """
        if not settings.rate_limit_enabled:
            return

        key = f"rate:{self.key_prefix}:{client_ip(request)}"
        try:
            redis_client = await self.get_redis()
            count = await _hit(redis_client, key, 60)
        except redis.RedisError as e:
            # Allow request if Redis is unavailable
            logger.warning(f"Rate limiter '{self.key_prefix}' unavailable: {e}")
            return

        if count >= self.requests_per_minute:
            logger.info(f"Rate limit hit for {key}")
            raise RateLimitExceeded()


# Pre-configured rate limiters for different endpoints
login_limiter = RateLimiter(requests_per_minute=5, key_prefix="login")
register_limiter = RateLimiter(requests_per_minute=3, key_prefix="register")
booking_limiter = RateLimiter(requests_per_minute=10, key_prefix="booking")
message_limiter = RateLimiter(requests_per_minute=30, key_prefix="message")
