from django.contrib import admin
from apps.expenses.models import Expense, SplitDetail, Transaction


class SplitDetailInline(admin.TabularInline):
    """Inline admin for split details."""
    model = SplitDetail
    extra = 0
    fields = ['position', 'user', 'amount_owed', 'percentage', 'transaction_ref']
    readonly_fields = fields
    can_delete = False


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    """Admin interface for Expenses."""

    list_display = [
        'description',
        'payer',
        'group',
        'total_amount',
        'currency',
        'category',
        'split_method',
        'is_settled',
        'created_at',
    ]
    list_filter = ['category', 'split_method', 'is_settled', 'currency', 'created_at']
    search_fields = ['description', 'payer__email', 'group__name']
    readonly_fields = ['payer_share', 'is_settled', 'created_at']
    inlines = [SplitDetailInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('payer', 'group')


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Admin interface for Transactions (read-only; settlement goes through the API)."""

    list_display = ['sender', 'receiver', 'amount', 'currency', 'status', 'mode', 'created_at']
    list_filter = ['status', 'mode', 'currency', 'created_at']
    search_fields = ['sender__email', 'receiver__email', 'settlement_token', 'expense__description']
    readonly_fields = [
        'id', 'settlement_token', 'expense', 'split_detail', 'sender', 'receiver',
        'amount', 'currency', 'mode', 'status', 'created_at', 'updated_at',
    ]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('sender', 'receiver', 'expense')

    def has_add_permission(self, request):
        return False
