class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(DomainError):
    """Raised when the change collides with existing state (overlaps, duplicates)."""


class StateError(DomainError):
    """Raised on an illegal state transition."""


class NotFoundError(DomainError):
    """Raised when the referenced entity does not exist."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class DuplicateAttendanceError(ConflictError, ValidationError):
    """Attendance already exists for a (student, date) pair.

    Callers of mark_attendance may catch it either as a conflict or as invalid input.
    """
