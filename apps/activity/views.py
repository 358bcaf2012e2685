from rest_framework import viewsets
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated

from apps.accounts.permissions import IsAdminRole
from .models import ActivityLog
from .serializers import ActivityLogSerializer, ActivityFilterSerializer


class ActivityPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class ActivityLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Audit trail of changes, newest first (admin only).

    list: Log entries, filterable by action, entity, entity_id and user
    retrieve: One log entry
    """

    queryset = ActivityLog.objects.all()
    serializer_class = ActivityLogSerializer
    permission_classes = [IsAuthenticated, IsAdminRole]
    pagination_class = ActivityPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        filter_serializer = ActivityFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if 'action' in params:
            queryset = queryset.filter(action=params['action'])
        if 'entity' in params:
            queryset = queryset.filter(entity=params['entity'])
        if 'entity_id' in params:
            queryset = queryset.filter(entity_id=params['entity_id'])
        if 'user' in params:
            queryset = queryset.filter(user_id=params['user'])

        return queryset
