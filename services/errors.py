# services/errors.py
"""
Application error taxonomy.

Only ValidationError / NotFoundError / UnauthorizedError / RateLimitError are
request-fatal. Price and advisory failures degrade inside the services and
never reach the HTTP layer.
"""
from __future__ import annotations


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class RateLimitError(AppError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message)


class ExternalServiceError(AppError):
    """A whole provider call failed. Raised and caught inside the pricing layer."""

    status_code = 502
    code = "EXTERNAL_API_ERROR"

    def __init__(self, service: str, detail: str | None = None):
        self.service = service
        self.detail = detail or "Unknown error"
        super().__init__(self.detail)


class AdvisoryUnavailable(AppError):
    """The advisory text generator failed or answered with something unusable."""

    code = "ADVISORY_UNAVAILABLE"
