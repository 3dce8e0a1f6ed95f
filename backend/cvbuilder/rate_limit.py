"""Rate limiting singleton using slowapi."""

from fastapi import Request
from slowapi import Limiter

from .config import settings


def client_ip(request: Request) -> str:
    """Extract client IP, supporting X-Forwarded-For behind a reverse proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# Counters live in Redis when REDIS_URL is set so every worker shares them.
limiter = Limiter(
    key_func=client_ip,
    enabled=settings.rate_limit_enabled,
    storage_uri=settings.redis_url or "memory://",
)
