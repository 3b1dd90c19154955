class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when the record is not in a state that allows the action."""

    status_code = 409


class ExternalServiceError(DomainError):
    """Raised when an email/SMS provider call fails."""

    status_code = 500
