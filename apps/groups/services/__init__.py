"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and row locks.
"""

from .exceptions import (
    GroupNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    CannotRemoveCreatorError,
    InsufficientPermissionsError,
)

from .group_management import (
    create_group,
    update_group,
    delete_group,
    get_group_by_id,
)

from .membership_management import (
    add_members,
    remove_member,
    get_group_members,
    touch_group_activity,
)

from .group_balances import (
    GroupOwe,
    calculate_group_owes,
    get_group_stats,
    get_group_transactions,
)


__all__ = [
    # Exceptions
    'GroupNotFoundError',
    'AlreadyMemberError',
    'NotMemberError',
    'CannotRemoveCreatorError',
    'InsufficientPermissionsError',

    # Group Management
    'create_group',
    'update_group',
    'delete_group',
    'get_group_by_id',

    # Membership Management
    'add_members',
    'remove_member',
    'get_group_members',
    'touch_group_activity',

    # Group Balances
    'GroupOwe',
    'calculate_group_owes',
    'get_group_stats',
    'get_group_transactions',
]
