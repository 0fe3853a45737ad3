from rest_framework import serializers
from .models import Group, GroupMembership
from apps.accounts.serializers import UserMinimalSerializer
from apps.expenses.serializers import TransactionSerializer


class GroupSerializer(serializers.ModelSerializer):
    """Main serializer for groups."""

    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()
    user_role = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'created_by',
            'is_archived',
            'is_favorite',
            'member_count',
            'user_role',
            'last_activity',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_by', 'last_activity', 'created_at', 'updated_at']

    def get_member_count(self, obj):
        """Get number of members in the group."""
        return obj.memberships.count()

    def get_user_role(self, obj):
        """Get current user's role in the group."""
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.get_user_role(request.user)
        return None


class GroupCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating groups."""

    member_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        default=list,
        help_text="Initial members besides the creator."
    )

    class Meta:
        model = Group
        fields = ['name', 'description', 'member_ids']


class GroupUpdateSerializer(serializers.Serializer):
    """Validate partial group updates."""

    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    is_archived = serializers.BooleanField(required=False)
    is_favorite = serializers.BooleanField(required=False)


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    created_by = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'created_by',
            'is_archived',
            'is_favorite',
            'member_count',
            'last_activity',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        return obj.memberships.count()


class GroupMemberSerializer(serializers.ModelSerializer):
    """Detailed member information."""

    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = GroupMembership
        fields = ['id', 'user', 'role', 'joined_at']
        read_only_fields = fields


class AddMembersSerializer(serializers.Serializer):
    """Serializer for adding members to a group."""

    user_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
    )


class RemoveMemberSerializer(serializers.Serializer):
    """Serializer for removing a member from a group."""

    user_id = serializers.UUIDField()


class GroupOweSerializer(serializers.Serializer):
    """One netted debt between two members."""

    from_user = UserMinimalSerializer(read_only=True)
    to_user = UserMinimalSerializer(read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    currency = serializers.CharField(read_only=True)


class GroupCurrencyTotalSerializer(serializers.Serializer):
    currency = serializers.CharField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    settled_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    expense_count = serializers.IntegerField()


class GroupContributionSerializer(serializers.Serializer):
    user = UserMinimalSerializer()
    currency = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class GroupStatsSerializer(serializers.Serializer):
    """Headline totals of a group."""

    member_count = serializers.IntegerField()
    expense_count = serializers.IntegerField()
    settled_expense_count = serializers.IntegerField()
    totals = GroupCurrencyTotalSerializer(many=True)
    contributions = GroupContributionSerializer(many=True)


class GroupTransactionsSerializer(serializers.Serializer):
    """Group transactions split by status."""

    completed = TransactionSerializer(many=True)
    pending = TransactionSerializer(many=True)
    failed = TransactionSerializer(many=True)
