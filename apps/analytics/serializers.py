"""
Serializers for analytics app.

Input Serializers:
    BreakdownQuerySerializer - Validates the breakdown currency parameter
    RecentQuerySerializer - Validates the recent transactions limit

Response Serializers:
    DashboardResponseSerializer - Headline figures
    CurrencySummarySerializer - Totals for one currency
    BreakdownResponseSerializer - Category and month buckets
    RecentTransactionSerializer - One entry of recent activity
"""

from rest_framework import serializers


# =============================================================================
# Input Serializers (Query Parameter Validation)
# =============================================================================

class BreakdownQuerySerializer(serializers.Serializer):
    """
    Validate breakdown query parameters.

    Query Parameters:
        currency (str): Target ISO currency code (e.g. 'USD'); defaults to
            the user's preferred currency
    """

    currency = serializers.RegexField(
        regex=r'^[A-Za-z]{3}$',
        required=False,
        help_text='Target currency (3-letter ISO code)'
    )

    def validate_currency(self, value):
        return value.upper()


class RecentQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=50, default=10)


# =============================================================================
# Response Serializers
# =============================================================================

class DashboardResponseSerializer(serializers.Serializer):
    total_expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_payments = serializers.DecimalField(max_digits=14, decimal_places=2)
    settled_payments = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_groups = serializers.IntegerField()
    total_members = serializers.IntegerField()
    group_expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.CharField()


class CurrencySummarySerializer(serializers.Serializer):
    total_expenses = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_pending = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_settled = serializers.DecimalField(max_digits=14, decimal_places=2)


class BreakdownResponseSerializer(serializers.Serializer):
    currency = serializers.CharField()
    by_category = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    by_month = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    pending_by_category = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    settled_by_category = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    pending_by_month = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    settled_by_month = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))


class RecentTransactionSerializer(serializers.Serializer):
    token = serializers.CharField()
    description = serializers.CharField()
    direction = serializers.ChoiceField(choices=['sent', 'received'])
    counterparty = serializers.CharField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    original_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    original_currency = serializers.CharField()
    status = serializers.CharField()
    mode = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()


class ErrorSerializer(serializers.Serializer):
    message = serializers.CharField()
