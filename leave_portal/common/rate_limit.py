"""Rate limiting configuration using slowapi.

The limiter is shared by the routers and wired into the app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from leave_portal.config import settings

# Per client IP; individual routes can override with @limiter.limit("N/period").
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)
