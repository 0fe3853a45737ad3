"""Response serializers for the currency endpoints."""

from rest_framework import serializers


class RateSnapshotSerializer(serializers.Serializer):
    """Rates relative to ``base_currency`` at ``fetched_at``."""

    id = serializers.CharField(source='snapshot_id')
    base_currency = serializers.CharField()
    fetched_at = serializers.DateTimeField()
    rates = serializers.DictField(child=serializers.DecimalField(max_digits=20, decimal_places=6))


class RateRefreshResponseSerializer(serializers.Serializer):
    refreshed = serializers.BooleanField()
    snapshot = RateSnapshotSerializer(allow_null=True)


class ErrorSerializer(serializers.Serializer):
    message = serializers.CharField()
