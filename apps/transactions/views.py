from django.db import transaction
from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsAdminRole, IsAdminOrReadOnly, get_investor_profile
from apps.units.serializers import NextCodeSerializer
from .models import Transaction
from .serializers import (
    TransactionSerializer,
    TransactionListSerializer,
    CostSerializer,
    ProfitSharingSerializer,
    PaymentHistorySerializer,
    PaymentResultSerializer,
    PaymentSummarySerializer,
    # Input serializers
    TransactionFilterSerializer,
    TransactionCreateSerializer,
    TransactionUpdateSerializer,
    FinalizeSaleSerializer,
    UpdateSharesSerializer,
    PaymentCreateSerializer,
    CostInputSerializer,
)
from .services import (
    create_transaction,
    finalize_transaction,
    revert_transaction,
    update_shares,
    update_transaction,
    set_transaction_status,
    delete_transaction,
    get_transaction_by_id,
    record_payment,
    get_payment_summary,
    add_cost,
    update_cost,
    delete_cost,
    next_transaction_code,
    # Exceptions
    ProfitEngineError,
    EngineValidationError,
    EngineConflictError,
    EngineNotFoundError,
)


UUID_REGEX = '[0-9a-fA-F-]{36}'


def engine_error_response(error: ProfitEngineError) -> Response:
    """Translate a service error into an error response."""
    if isinstance(error, EngineNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, EngineConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, EngineValidationError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return Response({'error': str(error)}, status=code)


class TransactionPagination(PageNumberPagination):
    """Custom pagination for transactions."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class TransactionViewSet(viewsets.ModelViewSet):
    """
    ViewSet for transactions and everything hanging off them.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Transactions visible to the user (filterable)
    create: Open a transaction for a unit (admin only)
    retrieve: Transaction with costs, profit sharing and payouts
    update / partial_update: Edit details or move status (admin only)
    destroy: Delete with costs, profit sharing and payouts (admin only)
    """

    queryset = Transaction.objects.select_related('unit', 'unit__investor')
    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    pagination_class = TransactionPagination
    lookup_value_regex = UUID_REGEX

    def get_permissions(self):
        """Reference code suggestions are admin only even though they are reads."""
        if self.action == 'next_code':
            return [IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        """Filter transactions using input serializer validation."""
        queryset = super().get_queryset()
        user = self.request.user

        # Investor accounts only see their own units' transactions
        if not user.is_admin_role:
            investor = get_investor_profile(user)
            if investor is None:
                return queryset.none()
            queryset = queryset.filter(unit__investor=investor)

        if self.action == 'retrieve':
            return queryset.select_related('profit_sharing').prefetch_related(
                'costs',
                'payment_histories__investor',
            )

        if self.action != 'list':
            return queryset

        filter_serializer = TransactionFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if 'status' in params:
            queryset = queryset.filter(status=params['status'])
        if 'payment_status' in params:
            queryset = queryset.filter(payment_status=params['payment_status'])
        if 'profit_status' in params:
            queryset = queryset.filter(profit_status=params['profit_status'])
        if 'unit' in params:
            queryset = queryset.filter(unit_id=params['unit'])
        if 'investor' in params:
            queryset = queryset.filter(unit__investor_id=params['investor'])
        if params.get('search'):
            term = params['search']
            queryset = queryset.filter(
                Q(transaction_code__icontains=term) |
                Q(unit__code__icontains=term) |
                Q(unit__name__icontains=term) |
                Q(unit__plate_number__icontains=term)
            )
        if 'date_from' in params:
            queryset = queryset.filter(buy_date__gte=params['date_from'])
        if 'date_to' in params:
            queryset = queryset.filter(buy_date__lte=params['date_to'])

        return queryset

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return TransactionListSerializer
        elif self.action == 'create':
            return TransactionCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return TransactionUpdateSerializer
        return TransactionSerializer

    def _detail_response(self, transaction_id, status_code=status.HTTP_200_OK):
        trx = get_transaction_by_id(transaction_id)
        return Response(TransactionSerializer(trx).data, status=status_code)

    @extend_schema(request=TransactionCreateSerializer, responses={201: TransactionSerializer})
    def create(self, request, *args, **kwargs):
        """Open a new transaction for a unit."""
        serializer = TransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            trx = create_transaction(
                unit_id=data['unit'],
                buy_date=data['buy_date'],
                buy_price=data['buy_price'],
                transaction_code=data.get('transaction_code') or None,
                initial_investor_capital=data.get('initial_investor_capital'),
                initial_manager_capital=data.get('initial_manager_capital'),
                notes=data.get('notes', ''),
                user=request.user
            )
        except ProfitEngineError as e:
            return engine_error_response(e)

        return self._detail_response(trx.id, status.HTTP_201_CREATED)

    @extend_schema(request=TransactionUpdateSerializer, responses={200: TransactionSerializer})
    def update(self, request, *args, **kwargs):
        """
        Edit transaction details and optionally move its status.

        PUT and PATCH behave the same: only the fields sent change.
        """
        serializer = TransactionUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        new_status = data.pop('status', None)
        investor_share = data.pop('investor_share_percentage', None)
        manager_share = data.pop('manager_share_percentage', None)
        transaction_id = self.kwargs['pk']

        try:
            with transaction.atomic():
                if data:
                    update_transaction(transaction_id=transaction_id, user=request.user, **data)
                if new_status is not None:
                    set_transaction_status(
                        transaction_id=transaction_id,
                        status=new_status,
                        investor_share_percentage=investor_share,
                        manager_share_percentage=manager_share,
                        user=request.user
                    )
                elif investor_share is not None or manager_share is not None:
                    update_shares(
                        transaction_id=transaction_id,
                        investor_share_percentage=investor_share,
                        manager_share_percentage=manager_share,
                        user=request.user
                    )
                trx = get_transaction_by_id(transaction_id)
        except ProfitEngineError as e:
            return engine_error_response(e)

        return Response(TransactionSerializer(trx).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        """Delete a transaction with its costs, profit sharing and payouts."""
        try:
            delete_transaction(transaction_id=self.kwargs['pk'], user=request.user)
        except ProfitEngineError as e:
            return engine_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=FinalizeSaleSerializer, responses={200: TransactionSerializer})
    @action(detail=True, methods=['post'])
    def sell(self, request, pk=None):
        """
        Record the sale and compute the profit split.

        POST /api/transactions/{id}/sell/
        """
        serializer = FinalizeSaleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = finalize_transaction(
                transaction_id=pk,
                sell_date=data['sell_date'],
                sell_price=data['sell_price'],
                investor_share_percentage=data.get('investor_share_percentage'),
                manager_share_percentage=data.get('manager_share_percentage'),
                loss_bearer=data.get('loss_bearer'),
                notes=data.get('notes'),
                user=request.user
            )
        except ProfitEngineError as e:
            return engine_error_response(e)

        return self._detail_response(result.transaction.id)

    @extend_schema(request=None, responses={200: TransactionSerializer})
    @action(detail=True, methods=['post'])
    def revert(self, request, pk=None):
        """
        Take a sold transaction back to in process.

        POST /api/transactions/{id}/revert/
        """
        try:
            trx = revert_transaction(transaction_id=pk, user=request.user)
        except ProfitEngineError as e:
            return engine_error_response(e)

        return self._detail_response(trx.id)

    @extend_schema(request=UpdateSharesSerializer, responses={200: ProfitSharingSerializer})
    @action(detail=True, methods=['patch'], url_path='profit-sharing')
    def profit_sharing(self, request, pk=None):
        """
        Change the investor/manager split of a sold transaction.

        PATCH /api/transactions/{id}/profit-sharing/
        """
        serializer = UpdateSharesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            profit_sharing = update_shares(
                transaction_id=pk,
                investor_share_percentage=serializer.validated_data.get('investor_share_percentage'),
                manager_share_percentage=serializer.validated_data.get('manager_share_percentage'),
                user=request.user
            )
        except ProfitEngineError as e:
            return engine_error_response(e)

        return Response(ProfitSharingSerializer(profit_sharing).data)

    @extend_schema(
        methods=['GET'],
        responses={200: PaymentHistorySerializer(many=True)},
        description="Payout history with what the investor is owed and has received.",
    )
    @extend_schema(
        methods=['POST'],
        request=PaymentCreateSerializer,
        responses={201: PaymentResultSerializer},
        description="Record a payout to the investor.",
    )
    @action(detail=True, methods=['get', 'post'])
    def payments(self, request, pk=None):
        """
        List or record payouts.

        GET  /api/transactions/{id}/payments/
        POST /api/transactions/{id}/payments/
        """
        if request.method == 'GET':
            trx = self.get_object()
            summary = get_payment_summary(transaction_id=trx.id)
            payments = trx.payment_histories.select_related('investor')
            return Response({
                'summary': PaymentSummarySerializer(summary).data,
                'payments': PaymentHistorySerializer(payments, many=True).data,
            })

        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = record_payment(
                transaction_id=pk,
                amount=data['amount'],
                payment_date=data['payment_date'],
                method=data['method'],
                proof_image_url=data.get('proof_image_url'),
                notes=data.get('notes', ''),
                user=request.user
            )
        except ProfitEngineError as e:
            return engine_error_response(e)

        return Response(PaymentResultSerializer(result).data, status=status.HTTP_201_CREATED)

    @extend_schema(methods=['GET'], responses={200: CostSerializer(many=True)})
    @extend_schema(methods=['POST'], request=CostInputSerializer, responses={201: CostSerializer})
    @action(detail=True, methods=['get', 'post'])
    def costs(self, request, pk=None):
        """
        List or add operational costs.

        GET  /api/transactions/{id}/costs/
        POST /api/transactions/{id}/costs/
        """
        if request.method == 'GET':
            trx = self.get_object()
            return Response(CostSerializer(trx.costs.all(), many=True).data)

        serializer = CostInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            cost = add_cost(transaction_id=pk, user=request.user, **serializer.validated_data)
        except ProfitEngineError as e:
            return engine_error_response(e)

        return Response(CostSerializer(cost).data, status=status.HTTP_201_CREATED)

    @extend_schema(methods=['PUT', 'PATCH'], request=CostInputSerializer, responses={200: CostSerializer})
    @extend_schema(methods=['DELETE'], responses={204: None})
    @action(
        detail=True,
        methods=['put', 'patch', 'delete'],
        url_path=f'costs/(?P<cost_id>{UUID_REGEX})'
    )
    def cost_detail(self, request, pk=None, cost_id=None):
        """
        Edit or remove a single cost.

        PUT|PATCH|DELETE /api/transactions/{id}/costs/{cost_id}/
        """
        try:
            if request.method == 'DELETE':
                delete_cost(transaction_id=pk, cost_id=cost_id, user=request.user)
                return Response(status=status.HTTP_204_NO_CONTENT)

            serializer = CostInputSerializer(data=request.data, partial=request.method == 'PATCH')
            serializer.is_valid(raise_exception=True)
            cost = update_cost(
                transaction_id=pk,
                cost_id=cost_id,
                user=request.user,
                **serializer.validated_data
            )
        except ProfitEngineError as e:
            return engine_error_response(e)

        return Response(CostSerializer(cost).data)

    @extend_schema(responses={200: NextCodeSerializer})
    @action(detail=False, methods=['get'], url_path='next-code')
    def next_code(self, request):
        """
        Suggest the next transaction code.

        GET /api/transactions/next-code/
        """
        return Response({'code': next_transaction_code()})
