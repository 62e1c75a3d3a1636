"""Rate limiting configuration using slowapi.

Module-level Limiter shared by routers (per-endpoint overrides via
``@limiter.limit``) and wired into the FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from backend.config import settings

# Default applies per client IP to every endpoint.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
