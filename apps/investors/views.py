from django.db import transaction
from django.db.models import ProtectedError, Q
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsAdminOrReadOnly, get_investor_profile
from apps.activity.models import ActivityAction, ActivityEntity
from apps.activity.services import log_activity_on_commit
from apps.dashboard.queries import DashboardQueries
from apps.dashboard.serializers import InvestorSummarySerializer
from .models import Investor
from .serializers import InvestorSerializer, InvestorFilterSerializer


class InvestorPagination(PageNumberPagination):
    """Custom pagination for investors."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class InvestorViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Investor CRUD operations.

    list: Investors visible to the user (investors only see themselves)
    create: Register an investor (admin only)
    retrieve: Get an investor profile
    update / partial_update: Edit an investor (admin only)
    destroy: Delete an investor without units or payouts (admin only)
    summary: Capital, profit and payout summary
    """

    queryset = Investor.objects.select_related('user')
    serializer_class = InvestorSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    pagination_class = InvestorPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user

        if not user.is_admin_role:
            investor = get_investor_profile(user)
            if investor is None:
                return queryset.none()
            queryset = queryset.filter(pk=investor.pk)

        if self.action != 'list':
            return queryset

        filter_serializer = InvestorFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        term = filter_serializer.validated_data.get('search')
        if term:
            queryset = queryset.filter(
                Q(name__icontains=term) |
                Q(contact_info__icontains=term)
            )

        return queryset.order_by('name')

    @transaction.atomic
    def perform_create(self, serializer):
        investor = serializer.save()
        log_activity_on_commit(
            action=ActivityAction.CREATE,
            entity=ActivityEntity.INVESTOR,
            entity_id=investor.id,
            details=f"Created investor {investor.name} ({investor.margin_percentage}% share)",
            user=self.request.user,
        )

    @transaction.atomic
    def perform_update(self, serializer):
        investor = serializer.save()
        log_activity_on_commit(
            action=ActivityAction.UPDATE,
            entity=ActivityEntity.INVESTOR,
            entity_id=investor.id,
            details=f"Updated investor {investor.name}",
            user=self.request.user,
        )

    def destroy(self, request, *args, **kwargs):
        """Delete an investor. Investors with units or payouts can't be deleted."""
        investor = self.get_object()
        investor_id, name = investor.id, investor.name

        try:
            with transaction.atomic():
                investor.delete()
                log_activity_on_commit(
                    action=ActivityAction.DELETE,
                    entity=ActivityEntity.INVESTOR,
                    entity_id=investor_id,
                    details=f"Deleted investor {name}",
                    user=request.user,
                )
        except ProtectedError:
            return Response(
                {'error': f"Investor {name} still has units or payouts and can't be deleted"},
                status=status.HTTP_409_CONFLICT
            )

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(responses={200: InvestorSummarySerializer})
    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """
        Investor portal summary.

        GET /api/investors/{id}/summary/
        """
        investor = self.get_object()
        data = DashboardQueries.investor_summary(investor.id)
        return Response(InvestorSummarySerializer(data).data)
