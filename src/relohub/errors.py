"""Domain error taxonomy.

Every error carries the HTTP status it maps to and optional extra fields that
are merged into the JSON error envelope by the global handler.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = 400

    def __init__(self, message: str, fields: dict[str, str] | None = None, **extra: Any) -> None:
        if fields:
            extra["fields"] = fields
        super().__init__(message, **extra)
        self.fields = fields or {}


class InvalidOrderError(ValidationError):
    """Requested position is not an integer within 1..N."""

    def __init__(self, message: str = "Invalid order value") -> None:
        super().__init__(message)


class InvalidTaskError(ValidationError):
    """Task is missing or inactive."""

    def __init__(self, message: str = "Invalid task ID") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class LimitExceededError(AppError):
    """A count ceiling or a last-item guard was hit."""

    status_code = 400


class AuthError(AppError):
    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403


class PlanRequiredError(PermissionDeniedError):
    """Feature needs an active paid plan."""

    def __init__(self, message: str = "An active paid plan is required to access this feature") -> None:
        super().__init__(message, requiresPaidPlan=True)


class RateLimitError(AppError):
    status_code = 429

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message, retryAfter=retry_after)
        self.retry_after = retry_after
