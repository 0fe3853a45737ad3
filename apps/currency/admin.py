from django.contrib import admin
from apps.currency.models import ExchangeRateSnapshot


@admin.register(ExchangeRateSnapshot)
class ExchangeRateSnapshotAdmin(admin.ModelAdmin):
    """Read-only admin for exchange rate snapshots."""

    list_display = ['base_currency', 'fetched_at', 'rate_count', 'source']
    list_filter = ['base_currency', 'source']
    readonly_fields = ['id', 'base_currency', 'rates', 'fetched_at', 'source']
    date_hierarchy = 'fetched_at'
    ordering = ['-fetched_at']

    def rate_count(self, obj):
        return len(obj.rates or {})
    rate_count.short_description = 'Rates'

    def has_change_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request):
        return False
