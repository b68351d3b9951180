"""
Domain errors raised by the workflows.

Each error carries a stable ``kind`` and a human readable message. The HTTP
layer maps the kind to a status code (see ``STATUS_CODES``).
"""

from typing import Any, Dict, Optional


class CampusError(Exception):
    """Base exception for all domain errors."""

    kind = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(CampusError):
    """Referenced entity does not exist."""
    kind = "not_found"


class ForbiddenError(CampusError):
    """Actor lacks the role or ownership required for the operation."""
    kind = "forbidden"


class ConflictError(CampusError):
    """Uniqueness violation."""
    kind = "conflict"


class ValidationError(CampusError):
    """Input outside declared bounds."""
    kind = "validation_error"


class CapacityExceededError(ValidationError):
    """Course is full."""
    kind = "capacity_exceeded"


class InvalidStateError(CampusError):
    """Operation not permitted in the entity's current state."""
    kind = "invalid_state"


class InvalidTransitionError(InvalidStateError):
    """Status change not allowed by the enrollment state machine."""
    kind = "invalid_transition"


STATUS_CODES = {
    NotFoundError: 404,
    ForbiddenError: 403,
    ConflictError: 409,
    ValidationError: 400,
    InvalidStateError: 400,
}


def status_code_for(exc: CampusError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500
