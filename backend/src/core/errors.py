"""Domain error hierarchy.

Services raise these instead of ``HTTPException`` so the key store and
lifecycle logic stay usable outside a request (scripts, tests). The FastAPI
exception handler in ``src.main`` renders them as ``ErrorResponse``.
"""

from __future__ import annotations

from typing import Any


class KeyringError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.error,
            "message": self.message,
            "details": self.details,
        }
        if request_id:
            payload["request_id"] = request_id
        return payload


class ValidationError(KeyringError):
    """Bad input shape or values (empty name, non-positive day count)."""

    status_code = 400
    error = "validation_error"


class UnauthorizedError(KeyringError):
    """Missing, unknown, expired or disabled secret."""

    status_code = 401
    error = "unauthorized"


class ForbiddenError(KeyringError):
    """Operation not allowed in the current state (e.g. bootstrap after first key)."""

    status_code = 403
    error = "forbidden"


class NotFoundError(KeyringError):
    """Record absent, or owned by another principal."""

    status_code = 404
    error = "not_found"


class ConflictError(KeyringError):
    """Unique secret collision. Retried by the service, never sent to clients."""

    status_code = 409
    error = "conflict"


class InternalError(KeyringError):
    """Persistence failure or exhausted retries."""

    status_code = 500
    error = "internal_error"
