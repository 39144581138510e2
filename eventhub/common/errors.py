"""
Error taxonomy shared by every service.

Each exception knows the HTTP status it maps to and a machine-readable
category. The gateway renders them as {"error": ..., "category": ...}.
"""

from typing import Any, Dict, Optional


class EventHubError(Exception):
    status_code = 500
    category = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "category": self.category}


class ValidationError(EventHubError):
    """Malformed or out-of-range input. `fields` maps field name -> problem."""

    status_code = 400
    category = "validation_error"

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class AuthError(EventHubError):
    status_code = 401
    category = "auth_error"


class Unauthorized(EventHubError):
    status_code = 401
    category = "unauthorized"


class Forbidden(EventHubError):
    status_code = 403
    category = "forbidden"


class NotFound(EventHubError):
    status_code = 404
    category = "not_found"


class ConflictError(EventHubError):
    status_code = 409
    category = "conflict"


class RateLimited(EventHubError):
    status_code = 429
    category = "rate_limited"

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["retryAfter"] = self.retry_after
        return body


class ServiceError(EventHubError):
    status_code = 503
    category = "service_error"
