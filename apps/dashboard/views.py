from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.permissions import get_investor_profile
from .queries import DashboardQueries
from .serializers import (
    # Input serializers
    OverviewQuerySerializer,
    RemindersQuerySerializer,
    # Response serializers
    DashboardOverviewSerializer,
    TaxReminderSerializer,
    ErrorSerializer,
)

NO_PROFILE_ERROR = 'Your account is not linked to an investor profile.'


def resolve_investor_scope(user, requested_investor_id=None):
    """
    Decide which investor a dashboard request is scoped to.

    Admins may pick any investor (or none for the whole business).
    Investor accounts are always scoped to their own profile.

    Returns:
        tuple: (investor_id or None, error Response or None)
    """
    if user.is_admin_role:
        return requested_investor_id, None

    investor = get_investor_profile(user)
    if investor is None:
        return None, Response({'error': NO_PROFILE_ERROR}, status=status.HTTP_403_FORBIDDEN)
    return investor.id, None


@extend_schema(
    parameters=[
        OpenApiParameter('investor', OpenApiTypes.UUID, description='Scope totals to one investor'),
    ],
    responses={
        200: DashboardOverviewSerializer,
        403: ErrorSerializer,
    },
    description='Business overview: totals, per-investor rows and monthly margins.',
    tags=['dashboard'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard overview - thin HTTP handler."""
    query_serializer = OverviewQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    investor_id, error = resolve_investor_scope(
        request.user,
        query_serializer.validated_data.get('investor'),
    )
    if error is not None:
        return error

    data = DashboardQueries.dashboard_overview(investor_id=investor_id)
    return Response(DashboardOverviewSerializer(data).data)


@extend_schema(
    parameters=[
        OpenApiParameter('days', OpenApiTypes.INT, description='Look-ahead window in days (default 30)'),
    ],
    responses={
        200: TaxReminderSerializer(many=True),
        403: ErrorSerializer,
    },
    description='Available units whose vehicle tax falls due soon.',
    tags=['dashboard'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tax_reminders(request):
    """Upcoming tax due dates - thin HTTP handler."""
    query_serializer = RemindersQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)

    investor_id, error = resolve_investor_scope(request.user)
    if error is not None:
        return error

    reminders = DashboardQueries.tax_reminders(
        days=query_serializer.validated_data['days'],
        investor_id=investor_id,
    )
    return Response(TaxReminderSerializer(reminders, many=True).data)
