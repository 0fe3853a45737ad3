"""
Domain-specific exceptions for expenses app.

One exception per business rule; each extends the ledger family that
decides its HTTP status.
"""

from rest_framework import status

from config.exceptions import (
    LedgerConflictError,
    LedgerForbiddenError,
    LedgerNotFoundError,
    LedgerValidationError,
)


class InvalidSplitError(LedgerValidationError):
    """Raised when split inputs do not describe a valid division of the total."""
    default_message = 'Invalid split.'


class InvalidExpenseError(LedgerValidationError):
    """Raised when expense fields fail business validation."""
    default_message = 'Invalid expense.'


class DuplicateExpenseError(LedgerConflictError):
    """
    Raised when an identical expense already exists.

    Treated as an accidental double submit and reported as a bad request.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'An identical expense already exists.'


class ExpenseNotFoundError(LedgerNotFoundError):
    """Raised when an expense does not exist or is not visible to the user."""
    default_message = 'Expense not found.'


class NotExpensePayerError(LedgerForbiddenError):
    """Raised when someone other than the payer mutates an expense."""
    default_message = 'Only the payer can modify this expense.'


class ExpenseHasSettlementsError(LedgerConflictError):
    """Raised when deleting an expense with settled obligations."""
    default_message = 'Expenses with settled payments cannot be deleted.'


class TransactionNotFoundError(LedgerNotFoundError):
    """Raised when no transaction matches a settlement token."""
    default_message = 'Transaction not found.'


class NotTransactionSenderError(LedgerForbiddenError):
    """Raised when someone other than the debtor settles a transaction."""
    default_message = 'Only the sender can settle this transaction.'


class TransactionAlreadySettledError(LedgerConflictError):
    """Raised when a settle request targets a terminal transaction."""
    default_message = 'Transaction is already settled.'


class InvalidSettlementError(LedgerValidationError):
    """Raised when the requested status or payment mode is not allowed."""
    default_message = 'Invalid settlement request.'
