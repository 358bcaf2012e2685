from django.contrib import admin
from .models import Investor


@admin.register(Investor)
class InvestorAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_info', 'margin_percentage', 'user', 'created_at']
    search_fields = ['name', 'contact_info', 'user__email']
    list_select_related = ['user']
    readonly_fields = ['id', 'created_at', 'updated_at']
    raw_id_fields = ['user']
