"""Typed operational errors raised by the gymflow services.

Check-in outcomes such as ``denied`` or ``ignored`` are never raised; they are
returned as :class:`gymflow.services.checkin.CheckInResult` values.
"""
from __future__ import annotations


class GymflowError(Exception):
    """Base class for operational errors surfaced to callers."""

    code = "ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GymflowError, ValueError):
    """Raised when input fails validation."""

    code = "BAD_REQUEST"


class NotFoundError(GymflowError, LookupError):
    """Raised when a referenced record does not exist."""

    code = "NOT_FOUND"


class ConflictError(GymflowError):
    """Raised when the requested change conflicts with stored state."""

    code = "CONFLICT"


__all__ = ["GymflowError", "ValidationError", "NotFoundError", "ConflictError"]
