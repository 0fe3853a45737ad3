"""
Membership management service.

Handles group membership operations. Every change keeps the creator in
the group.
"""

from typing import Iterable, List
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import resolve_users
from apps.groups.models import Group, GroupMembership, GroupRole

from .exceptions import (
    GroupNotFoundError,
    AlreadyMemberError,
    NotMemberError,
    CannotRemoveCreatorError,
    InsufficientPermissionsError,
)


def _lock_group(group_id: UUID) -> Group:
    try:
        return Group.objects.select_for_update().get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


@transaction.atomic
def add_members(
    *,
    group_id: UUID,
    user_ids: Iterable[UUID],
    added_by: User
) -> List[GroupMembership]:
    """
    Add users to a group.

    Any current member may add people.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If added_by is not a member
        UserNotFoundError: If any user ID does not resolve
        AlreadyMemberError: If any user is already a member
    """
    group = _lock_group(group_id)

    if not group.has_member(added_by):
        raise NotMemberError("Only group members can add people")

    users = resolve_users(user_ids=user_ids)
    existing = group.member_ids()
    duplicates = [user.get_display_name() for user in users if user.id in existing]
    if duplicates:
        raise AlreadyMemberError(f"Already a member: {', '.join(duplicates)}")

    memberships = [
        GroupMembership.objects.create(user=user, group=group, role=GroupRole.MEMBER)
        for user in users
    ]
    group.last_activity = timezone.now()
    group.save(update_fields=['last_activity', 'updated_at'])
    return memberships


@transaction.atomic
def remove_member(
    *,
    group_id: UUID,
    user_id: UUID,
    removed_by: User
) -> None:
    """
    Remove a member from a group.

    Members may remove themselves; the creator may remove anyone except
    themselves.

    Raises:
        GroupNotFoundError: If group doesn't exist
        CannotRemoveCreatorError: If the target is the creator
        InsufficientPermissionsError: If removed_by may not remove the target
        NotMemberError: If the target is not a member
    """
    group = _lock_group(group_id)

    if group.created_by_id == user_id:
        raise CannotRemoveCreatorError()

    if removed_by.id != user_id and group.created_by_id != removed_by.id:
        raise InsufficientPermissionsError("Only the group creator can remove other members")

    deleted, _ = GroupMembership.objects.filter(group=group, user_id=user_id).delete()
    if not deleted:
        raise NotMemberError("User is not a member of this group")


def get_group_members(*, group_id: UUID) -> QuerySet:
    """
    Get all memberships of a group with users loaded.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    if not Group.objects.filter(id=group_id).exists():
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return GroupMembership.objects.filter(group_id=group_id).select_related('user')


def touch_group_activity(*, group_id: UUID) -> None:
    """Bump the group's last activity timestamp."""
    Group.objects.filter(id=group_id).update(last_activity=timezone.now())
