"""
Ledger error taxonomy and the DRF exception handler.

Every app raises subclasses of the families below from its services
layer. The handler turns them into ``{"message": ...}`` responses with
the family's HTTP status, so views stay thin.

Exception Hierarchy:
    LedgerError (base)
    ├── LedgerValidationError   400
    ├── LedgerNotFoundError     404
    ├── LedgerForbiddenError    403
    ├── LedgerConflictError     409
    └── DependencyError         never surfaced, degraded locally
"""

import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler


logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base exception for all ledger service errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Ledger operation failed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class LedgerValidationError(LedgerError):
    """Malformed or missing input, or a split that does not add up."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid input.'


class LedgerNotFoundError(LedgerError):
    """A referenced expense, transaction, user or group does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Not found.'


class LedgerForbiddenError(LedgerError):
    """The actor is not allowed to perform the mutation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You do not have permission to perform this action.'


class LedgerConflictError(LedgerError):
    """The request conflicts with the current state of the ledger."""

    status_code = status.HTTP_409_CONFLICT
    default_message = 'Conflicting request.'


class DependencyError(LedgerError):
    """
    A non-critical collaborator failed (rates provider, notifications).

    Callers catch this locally, log a warning and degrade; it must never
    fail the user-facing operation.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'A dependency is unavailable.'


def ledger_exception_handler(exc, context):
    """
    Render ledger and DRF errors as ``{"message": ...}`` bodies.

    Field validation errors keep their per-field detail under ``errors``.
    """
    if isinstance(exc, LedgerError):
        if isinstance(exc, DependencyError):
            logger.warning("Dependency error reached the API layer: %s", exc.message)
        return Response({'message': exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {'message': 'Invalid input.', 'errors': response.data}
    elif isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'message': str(response.data['detail'])}
    return response
