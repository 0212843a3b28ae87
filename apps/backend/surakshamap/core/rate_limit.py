"""
rate_limit.py — Global rate limiter instance.

Uses slowapi (a Starlette-compatible wrapper around the `limits` library).
Requests are keyed by client IP address. The simulated assistant is the
only opted-in route; it sleeps for up to two seconds per call.

Usage in routes:
    @router.post("/classify")
    @limiter.limit(settings.classify_rate_limit)
    async def classify(request: Request, payload: ClassifyRequest):
        ...
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
