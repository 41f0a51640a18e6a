"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Controllers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class PermissionDeniedError(DomainError):
    """Caller lacks permission for the requested action."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ForbiddenTransitionError(PermissionDeniedError):
    """Dealership application status change not allowed from the current state."""

    def __init__(self, message: str, current: str | None = None):
        self.current = current
        super().__init__(message)


class HashingError(DomainError):
    """The password hashing primitive failed."""


class ConcurrentModificationError(DomainError):
    """Record changed between read and conditional write."""
