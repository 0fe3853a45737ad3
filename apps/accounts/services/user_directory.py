"""
User directory service.

Resolves user references coming from request payloads. The ledger only
needs existence checks and display data, so this stays small.
"""

from typing import Iterable, List
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError

from apps.accounts.models import User

from .exceptions import UserNotFoundError, InvalidUserReferenceError


def _coerce_uuid(value) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise InvalidUserReferenceError(f"Invalid user ID: {value}")


def get_user_by_id(*, user_id) -> User:
    """
    Get an active user by ID.

    Raises:
        InvalidUserReferenceError: If user_id is not a UUID
        UserNotFoundError: If no active user has this ID
    """
    try:
        return User.objects.get(id=_coerce_uuid(user_id), is_active=True)
    except (User.DoesNotExist, DjangoValidationError):
        raise UserNotFoundError(f"User with ID {user_id} not found")


def resolve_users(*, user_ids: Iterable) -> List[User]:
    """
    Resolve a list of user IDs, preserving the caller's order.

    Duplicate IDs are collapsed to their first occurrence.

    Args:
        user_ids: Iterable of UUIDs (or UUID strings)

    Returns:
        List of User instances in input order

    Raises:
        InvalidUserReferenceError: If any ID is malformed
        UserNotFoundError: If any ID does not match an active user
    """
    ordered_ids = []
    for raw_id in user_ids:
        user_id = _coerce_uuid(raw_id)
        if user_id not in ordered_ids:
            ordered_ids.append(user_id)

    users = User.objects.in_bulk(ordered_ids)
    missing = [
        str(user_id) for user_id in ordered_ids
        if user_id not in users or not users[user_id].is_active
    ]
    if missing:
        raise UserNotFoundError(
            f"One or more participants do not exist: {', '.join(missing)}"
        )

    return [users[user_id] for user_id in ordered_ids]
