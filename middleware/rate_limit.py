# middleware/rate_limit.py
"""
Rate limiting configuration using slowapi.

Usage in route files:
    from middleware.rate_limit import limiter, default_rate_limit

    @router.get("/expensive")
    @limiter.limit(default_rate_limit)
    async def my_endpoint(request: Request):
        ...

The limit string is read from RATE_LIMIT_DEFAULT on every request, so it can
be tuned per environment. Fixed windows expire on their own in both memory
and redis storage.
"""
import logging
import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from services.auth import DEVICE_ID_HEADER

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = "100/minute"


def rate_limit_key(request: Request) -> str:
    """
    Identify the caller: the device id when present, else the client address.
    Registration and cron calls carry no device id and fall back to the address.
    """
    device_id = (request.headers.get(DEVICE_ID_HEADER) or "").strip()
    if device_id:
        return f"device:{device_id}"
    return get_remote_address(request) or "anonymous"


def default_rate_limit() -> str:
    return os.getenv("RATE_LIMIT_DEFAULT", DEFAULT_RATE_LIMIT)


def _enabled() -> bool:
    return os.getenv("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no")


_storage = os.getenv("REDIS_URL", "memory://")

limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri=_storage,
    strategy="fixed-window",
    enabled=_enabled(),
)

logger.info("rate limiter configured: storage=%s", _storage.split("://", 1)[0])
