"""Domain-specific exceptions for accounts services."""

from config.exceptions import LedgerNotFoundError, LedgerValidationError


class UserNotFoundError(LedgerNotFoundError):
    """Raised when one or more referenced users do not exist."""
    default_message = 'One or more users do not exist.'


class InvalidUserReferenceError(LedgerValidationError):
    """Raised when a user reference is not a valid identifier."""
    default_message = 'Invalid user ID.'
