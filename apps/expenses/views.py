from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .serializers import (
    ExpenseCreateSerializer,
    ExpenseCreateResponseSerializer,
    ExpenseSerializer,
    MessageSerializer,
    SettleTransactionSerializer,
    SettlementResultSerializer,
    TransactionSerializer,
)
from apps.expenses.services import (
    create_expense,
    delete_expense,
    get_expense_by_id,
    get_group_expenses,
    get_recent_expenses,
    get_user_expenses,
    get_user_transactions,
    settle_transaction,
)


class LedgerPagination(PageNumberPagination):
    """Custom pagination for expenses and transactions."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ExpenseViewSet(viewsets.GenericViewSet):
    """
    ViewSet for Expense operations.

    All business logic is handled by services; domain errors are rendered
    by the API exception handler.

    list: Expenses the user paid for or participates in
    create: Create an expense and its pending transactions
    retrieve: Get an expense with split details
    destroy: Delete an expense (payer only, nothing settled yet)
    """

    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LedgerPagination

    def get_queryset(self):
        return get_user_expenses(user=self.request.user)

    def _paginated(self, queryset):
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = ExpenseSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(ExpenseSerializer(queryset, many=True).data)

    def list(self, request):
        """List the user's expenses."""
        return self._paginated(self.get_queryset())

    @extend_schema(
        request=ExpenseCreateSerializer,
        responses={201: ExpenseCreateResponseSerializer},
    )
    def create(self, request):
        """Create an expense."""
        serializer = ExpenseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        expense, transactions = create_expense(
            payer=request.user,
            total_amount=data['total_amount'],
            description=data['description'],
            participant_ids=data['participant_ids'],
            split_method=data['split_method'],
            category=data['category'],
            currency=data.get('currency'),
            split_inputs=data.get('split_inputs'),
            group_id=data.get('group_id'),
        )

        expense = get_expense_by_id(expense_id=expense.id)
        output = ExpenseCreateResponseSerializer({
            'expense': expense,
            'transactions': transactions,
        })
        return Response(output.data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        """Get expense details."""
        expense = get_expense_by_id(expense_id=pk, user=request.user)
        return Response(ExpenseSerializer(expense).data)

    @extend_schema(responses={200: MessageSerializer})
    def destroy(self, request, pk=None):
        """Delete an expense."""
        delete_expense(expense_id=pk, user=request.user)
        return Response({'message': 'Expense deleted.'}, status=status.HTTP_200_OK)

    @extend_schema(
        parameters=[OpenApiParameter('group_id', OpenApiTypes.UUID, OpenApiParameter.PATH)],
        responses={200: ExpenseSerializer(many=True)},
    )
    @action(detail=False, methods=['get'], url_path=r'group/(?P<group_id>[^/.]+)')
    def group(self, request, group_id=None):
        """Expenses recorded in a group the user belongs to."""
        return self._paginated(get_group_expenses(group_id=group_id, user=request.user))

    @extend_schema(responses={200: ExpenseSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def recent(self, request):
        """The user's five most recent expenses."""
        expenses = get_recent_expenses(user=request.user)
        return Response(ExpenseSerializer(expenses, many=True).data)


class TransactionViewSet(viewsets.GenericViewSet):
    """
    ViewSet for Transaction operations.

    list: Transaction history where the user is sender or receiver
    settle: Settle a transaction by its token (sender only)
    """

    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LedgerPagination
    lookup_field = 'settlement_token'
    lookup_url_kwarg = 'token'

    def get_queryset(self):
        return get_user_transactions(
            user=self.request.user,
            status=self.request.query_params.get('status'),
        )

    @extend_schema(
        parameters=[OpenApiParameter('status', OpenApiTypes.STR, description='Pending, Success or Failed')],
    )
    def list(self, request):
        """List the user's transactions."""
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(TransactionSerializer(page, many=True).data)
        return Response(TransactionSerializer(queryset, many=True).data)

    @extend_schema(
        request=SettleTransactionSerializer,
        responses={200: SettlementResultSerializer},
    )
    @action(detail=True, methods=['post'])
    def settle(self, request, token=None):
        """Settle a transaction as its sender."""
        serializer = SettleTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = settle_transaction(
            token=token,
            status=serializer.validated_data['status'],
            mode=serializer.validated_data.get('mode'),
            user=request.user,
        )
        return Response(SettlementResultSerializer(result).data)
