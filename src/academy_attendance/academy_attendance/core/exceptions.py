from __future__ import annotations

from typing import Optional

from .enums import ViolationKind


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, *, kind: Optional[ViolationKind] = None):
        super().__init__(message)
        self.kind = kind


class NotFoundError(DomainError):
    """Raised when a referenced student, batch, coach or record does not exist."""


class ConflictError(DomainError):
    """Raised when attendance is already marked for a (student, batch, date)."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
