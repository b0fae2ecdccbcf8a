"""
api/limiter.py -- Builds the application rate limiter and derives client keys.

The limiter is created once per application in the lifespan and stored on
app.state.rate_limiter. The middleware in api/main.py reads it from there,
so tests can swap in a limiter with their own limit and counters.
"""

from fastapi import Request
from slowapi.util import get_remote_address

from auth.ratelimit import RateLimiter
from core.config import Settings


def client_key(request: Request) -> str:
    """Identify the client by its socket peer address.

    X-Forwarded-For is client-controlled, so it is never used as the key.
    Behind a reverse proxy, run uvicorn with --proxy-headers and
    --forwarded-allow-ips so the peer address is rewritten for trusted hops only.
    """
    return get_remote_address(request)


def build_rate_limiter(settings: Settings) -> RateLimiter:
    return RateLimiter.from_uri(settings.rate_limit, settings.rate_limit_storage_uri)
