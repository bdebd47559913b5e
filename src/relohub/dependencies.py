"""Shared FastAPI dependencies."""

from fastapi import Request

from relohub.ratelimit import RateLimiter


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter created with the application."""
    return request.app.state.rate_limiter
