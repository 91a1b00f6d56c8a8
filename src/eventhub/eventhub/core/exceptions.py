class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFound(DomainError):
    """Unknown event, ticket type, registration or token."""


class Conflict(DomainError):
    """The requested transition already happened (token issued, duplicate registration)."""


class DuplicateCheckIn(Conflict):
    """The registration already has an attendance record."""

    def __init__(self, message: str, *, registration_id: int | None = None, check_in_time=None):
        super().__init__(message)
        self.registration_id = registration_id
        self.check_in_time = check_in_time


class CapacityExceeded(DomainError):
    """Confirmed registrations plus the requested quantity exceed max attendees."""

    def __init__(self, message: str, *, available: int | None = None, requested: int | None = None):
        super().__init__(message)
        self.available = available
        self.requested = requested


class InvalidRegistration(DomainError):
    """Acting on a cancelled registration (or a cancelled event)."""


class Unavailable(DomainError):
    """The database could not be reached. Not retried."""


class TokenCollision(Conflict):
    """A freshly generated QR token already belongs to another registration."""
