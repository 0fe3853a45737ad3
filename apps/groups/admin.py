# ==========================================
# apps/groups/admin.py
# ==========================================

from django.contrib import admin
from apps.groups.models import Group, GroupMembership


class GroupMembershipInline(admin.TabularInline):
    """Inline admin for group memberships."""
    model = GroupMembership
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Groups."""

    list_display = [
        'name',
        'created_by',
        'member_count',
        'is_archived',
        'is_favorite',
        'last_activity',
    ]
    list_filter = ['is_archived', 'is_favorite', 'created_at']
    search_fields = ['name', 'description', 'created_by__email']
    readonly_fields = ['last_activity', 'created_at', 'updated_at']
    inlines = [GroupMembershipInline]
    date_hierarchy = 'created_at'
    ordering = ['-last_activity']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'created_by')
        }),
        ('Flags', {
            'fields': ('is_archived', 'is_favorite')
        }),
        ('Metadata', {
            'fields': ('last_activity', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def member_count(self, obj):
        """Show number of members."""
        return obj.memberships.count()
    member_count.short_description = 'Members'


@admin.register(GroupMembership)
class GroupMembershipAdmin(admin.ModelAdmin):
    """Admin interface for Group Memberships."""

    list_display = ['user', 'group', 'role', 'joined_at']
    list_filter = ['role', 'joined_at']
    search_fields = ['user__email', 'group__name']
    readonly_fields = ['joined_at']
    date_hierarchy = 'joined_at'
    ordering = ['-joined_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('user', 'group')
