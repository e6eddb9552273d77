"""
Rate Limiting Configuration

Uses SlowAPI with in-memory storage (single instance). The login endpoint
gets the stricter RATE_LIMIT_AUTH budget; every other route falls under
RATE_LIMIT_DEFAULT through SlowAPIMiddleware.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from silver_admin.core.config import settings


def get_client_ip(request: Request) -> str:
    """Client IP, respecting X-Forwarded-For for proxied requests."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    enabled=settings.RATE_LIMIT_ENABLED,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
