# ==========================================
# apps/groups/models.py
# ==========================================

from django.db import models
from django.utils import timezone
import uuid


class GroupRole(models.TextChoices):
    OWNER = 'owner', 'Owner'
    MEMBER = 'member', 'Member'


class Group(models.Model):
    """Circle of people who share expenses."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='created_groups')
    is_archived = models.BooleanField(default=False)
    is_favorite = models.BooleanField(default=False)
    last_activity = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        indexes = [
            models.Index(fields=['created_by', 'created_at'], name='groups_created_8e2a71_idx'),
            models.Index(fields=['last_activity'], name='groups_last_ac_3c9d04_idx'),
        ]
        ordering = ['-last_activity']

    def __str__(self):
        return self.name

    def has_member(self, user):
        return self.memberships.filter(user=user).exists()

    def get_user_role(self, user):
        try:
            return self.memberships.get(user=user).role
        except GroupMembership.DoesNotExist:
            return None

    def member_ids(self):
        return set(self.memberships.values_list('user_id', flat=True))


class GroupMembership(models.Model):
    """User membership in a group."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='group_memberships')
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=GroupRole.choices, default=GroupRole.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_memberships'
        unique_together = [['user', 'group']]
        indexes = [
            models.Index(fields=['group', 'role'], name='group_membe_group_i_5d1f8a_idx'),
            models.Index(fields=['user', 'joined_at'], name='group_membe_user_id_9b4e27_idx'),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.group.name} ({self.role})"

    def save(self, *args, **kwargs):
        if self.group.created_by_id == self.user_id:
            self.role = GroupRole.OWNER
        super().save(*args, **kwargs)
