"""
Serializers for expenses app.

Input serializers validate request payloads before they reach the
services; response serializers document and shape the output.

Input Serializers:
    SplitInputSerializer - One participant's percentage or amount
    ExpenseCreateSerializer - Create expense payload
    SettleTransactionSerializer - Settle request payload

Response Serializers:
    ExpenseSerializer - Expense with payer, participants and split details
    TransactionSerializer - Transaction exposed by its settlement token
    ExpenseCreateResponseSerializer - {expense, transactions}
    SettlementResultSerializer - Outcome of a settle request
"""

from decimal import Decimal

from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from .models import (
    DESCRIPTION_MAX_LENGTH,
    Expense,
    ExpenseCategory,
    PaymentMode,
    SplitDetail,
    SplitMethod,
    Transaction,
    TransactionStatus,
)


# =============================================================================
# Input Serializers
# =============================================================================

class SplitInputSerializer(serializers.Serializer):
    """Percentage (Percentage split) or amount (Custom split) for one participant."""

    user_id = serializers.UUIDField()
    percentage = serializers.DecimalField(
        max_digits=7,
        decimal_places=4,
        min_value=Decimal('0'),
        max_value=Decimal('100'),
        required=False,
    )
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
    )


class ExpenseCreateSerializer(serializers.Serializer):
    """Validate expense creation payload."""

    total_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.01'),
    )
    description = serializers.CharField(max_length=DESCRIPTION_MAX_LENGTH)
    category = serializers.ChoiceField(
        choices=ExpenseCategory.choices,
        default=ExpenseCategory.MISCELLANEOUS,
    )
    split_method = serializers.ChoiceField(choices=SplitMethod.choices)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    participant_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        help_text='People sharing the expense; may include the payer.',
    )
    split_inputs = SplitInputSerializer(many=True, required=False)
    group_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        method = attrs['split_method']
        inputs = attrs.get('split_inputs') or []

        if method == SplitMethod.PERCENTAGE:
            missing = [str(entry['user_id']) for entry in inputs if entry.get('percentage') is None]
            if not inputs or missing:
                raise serializers.ValidationError({
                    'split_inputs': 'A percentage is required for every participant.'
                })
        elif method == SplitMethod.CUSTOM:
            missing = [str(entry['user_id']) for entry in inputs if entry.get('amount') is None]
            if not inputs or missing:
                raise serializers.ValidationError({
                    'split_inputs': 'An amount is required for every participant.'
                })
        else:
            attrs['split_inputs'] = None

        return attrs


class SettleTransactionSerializer(serializers.Serializer):
    """Validate a settle request."""

    status = serializers.ChoiceField(
        choices=[TransactionStatus.SUCCESS, TransactionStatus.FAILED]
    )
    mode = serializers.ChoiceField(
        choices=PaymentMode.choices,
        required=False,
        allow_null=True,
    )

    def validate(self, attrs):
        if attrs['status'] == TransactionStatus.SUCCESS and not attrs.get('mode'):
            raise serializers.ValidationError({'mode': 'A payment mode is required.'})
        return attrs


# =============================================================================
# Response Serializers
# =============================================================================

class SplitDetailSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)
    is_settled = serializers.BooleanField(read_only=True)

    class Meta:
        model = SplitDetail
        fields = ['position', 'user', 'amount_owed', 'percentage', 'transaction_ref', 'is_settled']
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    """Expense with payer and participant display data."""

    payer = UserMinimalSerializer(read_only=True)
    participants = UserMinimalSerializer(many=True, read_only=True)
    split_details = SplitDetailSerializer(many=True, read_only=True)
    group = serializers.SerializerMethodField()

    class Meta:
        model = Expense
        fields = [
            'id',
            'payer',
            'group',
            'total_amount',
            'currency',
            'description',
            'category',
            'split_method',
            'participants',
            'payer_share',
            'split_details',
            'is_settled',
            'created_at',
        ]
        read_only_fields = fields

    def get_group(self, obj):
        if obj.group is None:
            return None
        return {'id': str(obj.group.id), 'name': obj.group.name}


class TransactionSerializer(serializers.ModelSerializer):
    """Transaction identified externally by its settlement token."""

    token = serializers.CharField(source='settlement_token', read_only=True)
    expense_id = serializers.UUIDField(read_only=True)
    description = serializers.CharField(source='expense.description', read_only=True)
    sender = UserMinimalSerializer(read_only=True)
    receiver = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'token',
            'expense_id',
            'description',
            'sender',
            'receiver',
            'amount',
            'currency',
            'mode',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ExpenseCreateResponseSerializer(serializers.Serializer):
    expense = ExpenseSerializer()
    transactions = TransactionSerializer(many=True)


class SettlementResultSerializer(serializers.Serializer):
    transaction = TransactionSerializer()
    status = serializers.CharField()
    committed = serializers.BooleanField()
    expense_settled = serializers.BooleanField()
    message = serializers.CharField(allow_blank=True)


class MessageSerializer(serializers.Serializer):
    message = serializers.CharField()
