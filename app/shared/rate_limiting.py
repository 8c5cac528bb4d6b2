"""
Rate limiting configuration and setup.

Uses slowapi to enforce per-endpoint rate limits.
Prediction and training endpoints can trigger a model fit, so they
get the tighter "heavy" limit. Clients are keyed by the connection's
remote address; behind a proxy, uvicorn resolves that address from
forwarded headers sent by trusted proxies only (``forwarded_allow_ips``).
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings

DEFAULT_RATE_LIMIT = settings.rate_limit_default
HEAVY_RATE_LIMIT = settings.rate_limit_heavy

limiter = Limiter(key_func=get_remote_address, default_limits=[DEFAULT_RATE_LIMIT])


async def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Answer a throttled request in the shared error format."""
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "detail": str(exc.detail)},
    )
