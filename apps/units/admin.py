from django.contrib import admin
from .models import Unit


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'plate_number', 'investor', 'status', 'tax_due_date']
    list_filter = ['status', 'tax_due_date']
    search_fields = ['code', 'name', 'plate_number', 'investor__name']
    list_select_related = ['investor']
    readonly_fields = ['id', 'created_at', 'updated_at']
