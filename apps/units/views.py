from django.db import transaction
from django.db.models import ProtectedError, Q
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import IsAdminRole, IsAdminOrReadOnly, get_investor_profile
from apps.activity.models import ActivityAction, ActivityEntity
from apps.activity.services import log_activity_on_commit
from .models import Unit
from .serializers import UnitSerializer, UnitFilterSerializer, NextCodeSerializer
from .services import next_unit_code


class UnitPagination(PageNumberPagination):
    """Custom pagination for units."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class UnitViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Unit CRUD operations.

    list: Units visible to the user (filterable)
    create: Register a unit (admin only)
    retrieve: Get a specific unit
    update / partial_update: Edit a unit (admin only)
    destroy: Delete a unit without transactions (admin only)
    """

    queryset = Unit.objects.select_related('investor')
    serializer_class = UnitSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    pagination_class = UnitPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_permissions(self):
        if self.action == 'next_code':
            return [IsAuthenticated(), IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        """Filter units using input serializer validation."""
        queryset = super().get_queryset()
        user = self.request.user

        # Investor accounts only see their own units
        if not user.is_admin_role:
            investor = get_investor_profile(user)
            if investor is None:
                return queryset.none()
            queryset = queryset.filter(investor=investor)

        if self.action != 'list':
            return queryset

        filter_serializer = UnitFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if 'status' in params:
            queryset = queryset.filter(status=params['status'])
        if 'investor' in params:
            queryset = queryset.filter(investor_id=params['investor'])
        if params.get('search'):
            term = params['search']
            queryset = queryset.filter(
                Q(code__icontains=term) |
                Q(name__icontains=term) |
                Q(plate_number__icontains=term)
            )

        return queryset

    @transaction.atomic
    def perform_create(self, serializer):
        unit = serializer.save()
        log_activity_on_commit(
            action=ActivityAction.CREATE,
            entity=ActivityEntity.UNIT,
            entity_id=unit.id,
            details=f"Created unit {unit.code} ({unit.name})",
            user=self.request.user,
        )

    @transaction.atomic
    def perform_update(self, serializer):
        unit = serializer.save()
        log_activity_on_commit(
            action=ActivityAction.UPDATE,
            entity=ActivityEntity.UNIT,
            entity_id=unit.id,
            details=f"Updated unit {unit.code}",
            user=self.request.user,
        )

    def destroy(self, request, *args, **kwargs):
        """Delete a unit. Units with transaction history can't be deleted."""
        unit = self.get_object()
        unit_id, code = unit.id, unit.code

        try:
            with transaction.atomic():
                unit.delete()
                log_activity_on_commit(
                    action=ActivityAction.DELETE,
                    entity=ActivityEntity.UNIT,
                    entity_id=unit_id,
                    details=f"Deleted unit {code}",
                    user=request.user,
                )
        except ProtectedError:
            return Response(
                {'error': f"Unit {code} has transactions and can't be deleted"},
                status=status.HTTP_409_CONFLICT
            )

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(responses={200: NextCodeSerializer})
    @action(detail=False, methods=['get'], url_path='next-code')
    def next_code(self, request):
        """
        Suggest the next unit code.

        GET /api/units/next-code/
        """
        return Response({'code': next_unit_code()})
