from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
from .aggregator import BalanceAggregator
from .serializers import (
    # Input serializers
    BreakdownQuerySerializer,
    RecentQuerySerializer,
    # Response serializers
    DashboardResponseSerializer,
    CurrencySummarySerializer,
    BreakdownResponseSerializer,
    RecentTransactionSerializer,
    ErrorSerializer,
)


@extend_schema(
    responses={200: DashboardResponseSerializer},
    description="Get the user's headline balances in the reporting currency.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard statistics - thin HTTP handler."""
    data = BalanceAggregator().compute_dashboard(request.user)
    return Response(DashboardResponseSerializer(data).data)


@extend_schema(
    responses={200: OpenApiTypes.OBJECT},
    description=(
        "Get the user's totals per expense currency, without conversion. "
        "Keys are currency codes; values follow CurrencySummary."
    ),
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def summary(request):
    """Per-currency expense summary - thin HTTP handler."""
    data = BalanceAggregator().compute_summary(request.user)
    return Response({
        currency: CurrencySummarySerializer(totals).data
        for currency, totals in data.items()
    })


@extend_schema(
    parameters=[
        OpenApiParameter('currency', OpenApiTypes.STR, description='Target currency (3-letter ISO code)'),
    ],
    responses={
        200: BreakdownResponseSerializer,
        400: ErrorSerializer,
    },
    description="Get the user's expenses by category and month, pending and settled.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def breakdown(request):
    """Expense breakdown - thin HTTP handler."""
    query_serializer = BreakdownQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    data = BalanceAggregator().compute_breakdown(
        request.user,
        target_currency=query_serializer.validated_data.get('currency'),
    )
    return Response(BreakdownResponseSerializer(data).data)


@extend_schema(
    parameters=[
        OpenApiParameter('limit', OpenApiTypes.INT, description='Number of results', default=10),
    ],
    responses={200: RecentTransactionSerializer(many=True)},
    description="Get the user's latest transactions, sent or received.",
    tags=['analytics'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recent_transactions(request):
    """Recent transactions - thin HTTP handler."""
    query_serializer = RecentQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    data = BalanceAggregator().recent_transactions(
        request.user,
        limit=query_serializer.validated_data['limit'],
    )
    return Response(RecentTransactionSerializer(data, many=True).data)
