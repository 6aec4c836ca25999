from __future__ import annotations

from typing import Iterable, Tuple


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced student/subject/teacher/schedule does not exist."""


class AuthorizationError(DomainError):
    """Raised when a principal lacks permission for an action."""


class AlreadyMarkedError(DomainError):
    """Raised when a marking batch overlaps periods that are already recorded.

    `conflicts` holds (student_id, period_numbers) pairs when they are known.
    """

    def __init__(self, message: str, conflicts: Iterable[Tuple[int, Tuple[int, ...]]] = ()):
        super().__init__(message)
        self.conflicts = tuple(conflicts)


class NothingToEditError(DomainError):
    """Raised when an edit request matches no recorded period."""


class DispatchFailure(DomainError):
    """A push to a single target failed. Never fatal to the surrounding batch."""
