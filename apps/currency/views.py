from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from config.exceptions import LedgerNotFoundError

from .serializers import ErrorSerializer, RateRefreshResponseSerializer, RateSnapshotSerializer
from .services import get_rate_service


@extend_schema(
    responses={200: RateSnapshotSerializer, 404: ErrorSerializer},
    description="Get the exchange rate snapshot currently used for conversions.",
    tags=['currency'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def latest_rates(request):
    """Current exchange rates - thin HTTP handler."""
    snapshot = get_rate_service().latest()
    if snapshot is None:
        raise LedgerNotFoundError('No exchange rates have been fetched yet.')
    return Response(RateSnapshotSerializer(snapshot).data)


@extend_schema(
    request=None,
    responses={200: RateRefreshResponseSerializer},
    description=(
        "Fetch fresh exchange rates now. When the provider fails the "
        "previous snapshot stays in use and `refreshed` is false."
    ),
    tags=['currency'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def refresh_rates(request):
    """Refresh exchange rates on demand - thin HTTP handler."""
    service = get_rate_service()
    snapshot = service.refresh()
    refreshed = snapshot is not None
    if not refreshed:
        snapshot = service.latest()
    return Response(RateRefreshResponseSerializer({
        'refreshed': refreshed,
        'snapshot': snapshot,
    }).data)
