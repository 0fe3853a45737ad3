"""Services for accounts business logic."""

from .exceptions import (
    UserNotFoundError,
    InvalidUserReferenceError,
)
from .user_directory import get_user_by_id, resolve_users

__all__ = [
    # Exceptions
    'UserNotFoundError',
    'InvalidUserReferenceError',
    # Services
    'get_user_by_id',
    'resolve_users',
]
