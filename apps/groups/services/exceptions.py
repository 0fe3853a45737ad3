"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations; the API exception
handler converts them to HTTP responses using their ledger family.
"""

from config.exceptions import (
    LedgerConflictError,
    LedgerForbiddenError,
    LedgerNotFoundError,
    LedgerValidationError,
)


class GroupNotFoundError(LedgerNotFoundError):
    """Raised when a group does not exist or is inaccessible."""
    default_message = 'Group not found.'


class AlreadyMemberError(LedgerConflictError):
    """Raised when adding a user who is already in the group."""
    default_message = 'User is already a member of this group.'


class NotMemberError(LedgerForbiddenError):
    """Raised when a user performs an action requiring membership."""
    default_message = 'You must be a member of this group.'


class CannotRemoveCreatorError(LedgerValidationError):
    """Raised when a membership change would drop the group creator."""
    default_message = 'The group creator cannot be removed from the group.'


class InsufficientPermissionsError(LedgerForbiddenError):
    """Raised when a user lacks required permissions for an action."""
    default_message = 'Only the group creator can perform this action.'
