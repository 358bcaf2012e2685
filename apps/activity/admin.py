from django.contrib import admin
from .models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'user_name', 'action', 'entity', 'entity_id']
    list_filter = ['action', 'entity', 'created_at']
    search_fields = ['entity_id', 'details', 'user_name']
    readonly_fields = ['id', 'action', 'entity', 'entity_id', 'details', 'user', 'user_name', 'created_at']

    def has_add_permission(self, request):
        return False
