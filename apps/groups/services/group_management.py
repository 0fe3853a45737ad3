"""
Group management service.

Handles group CRUD operations with proper transaction safety.
"""

from typing import Iterable, Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Prefetch

from apps.accounts.models import User
from apps.accounts.services import resolve_users
from apps.groups.models import Group, GroupMembership, GroupRole

from .exceptions import (
    GroupNotFoundError,
    InsufficientPermissionsError,
)


@transaction.atomic
def create_group(
    *,
    name: str,
    creator: User,
    description: str = '',
    member_ids: Optional[Iterable[UUID]] = None,
) -> Group:
    """
    Create a new group with the creator as owner.

    This is a multi-step operation wrapped in a transaction:
    1. Resolve the requested members (all must exist)
    2. Create the group
    3. Create the owner membership, then one membership per member

    Args:
        name: Group name
        creator: User creating the group (always becomes a member)
        description: Optional group description
        member_ids: Optional initial member IDs; the creator may be listed

    Returns:
        Created Group instance

    Raises:
        UserNotFoundError: If any member ID does not resolve to a user
    """
    members = resolve_users(user_ids=member_ids or [])

    group = Group.objects.create(
        name=name,
        description=description,
        created_by=creator,
    )

    GroupMembership.objects.create(user=creator, group=group, role=GroupRole.OWNER)
    for member in members:
        if member.id == creator.id:
            continue
        GroupMembership.objects.create(user=member, group=group, role=GroupRole.MEMBER)

    return group


def get_group_by_id(*, group_id: UUID) -> Group:
    """
    Get a group by ID with its memberships prefetched.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    try:
        return (
            Group.objects
            .select_related('created_by')
            .prefetch_related(
                Prefetch(
                    'memberships',
                    queryset=GroupMembership.objects.select_related('user')
                )
            )
            .get(id=group_id)
        )
    except (Group.DoesNotExist, ValueError, DjangoValidationError):
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


@transaction.atomic
def update_group(
    *,
    group_id: UUID,
    user: User,
    name: Optional[str] = None,
    description: Optional[str] = None,
    is_archived: Optional[bool] = None,
    is_favorite: Optional[bool] = None,
) -> Group:
    """
    Update group details (creator only).

    Uses select_for_update to prevent concurrent modifications.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not the creator
    """
    try:
        group = Group.objects.select_for_update().get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if group.created_by_id != user.id:
        raise InsufficientPermissionsError("Only the group creator can update the group")

    update_fields = ['updated_at']
    for field, value in (
        ('name', name),
        ('description', description),
        ('is_archived', is_archived),
        ('is_favorite', is_favorite),
    ):
        if value is not None:
            setattr(group, field, value)
            update_fields.append(field)

    group.save(update_fields=update_fields)
    return group


@transaction.atomic
def delete_group(*, group_id: UUID, user: User) -> None:
    """
    Delete a group (creator only).

    Memberships cascade; expenses keep existing with their group cleared.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not the creator
    """
    try:
        group = Group.objects.select_for_update().get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if group.created_by_id != user.id:
        raise InsufficientPermissionsError("Only the group creator can delete the group")

    group.delete()
