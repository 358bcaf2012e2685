from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from apps.investors.models import Investor
from .models import User, UserRole


class InvestorProfileInline(admin.StackedInline):
    """Investor profile linked to an investor login account."""
    model = Investor
    fk_name = 'user'
    extra = 0
    max_num = 1
    fields = ['name', 'contact_info', 'margin_percentage']
    show_change_link = True


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for login accounts.

    Admin accounts run the business. Investor accounts are linked to an
    investor profile and get read access to its units and transactions.
    """

    list_display = [
        'email',
        'display_name',
        'role_badge',
        'investor_name',
        'is_active',
        'last_login',
    ]
    list_filter = ['role', 'is_active', 'is_staff']
    list_select_related = ['investor_profile']
    search_fields = ['email', 'display_name', 'investor_profile__name']
    ordering = ['email']
    inlines = [InvestorProfileInline]

    # Email login, no username
    fieldsets = (
        ('Account', {
            'fields': ('email', 'display_name', 'password', 'role')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )
    add_fieldsets = (
        ('New account', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'role', 'password1', 'password2'),
        }),
    )
    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = []

    @admin.display(description='Role', ordering='role')
    def role_badge(self, obj):
        if obj.role == UserRole.ADMIN:
            bg, fg = '#1F4E79', 'white'
        else:
            bg, fg = '#D9E2EC', '#243B53'
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_role_display()
        )

    @admin.display(description='Investor')
    def investor_name(self, obj):
        investor = getattr(obj, 'investor_profile', None)
        return investor.name if investor else '-'

    @admin.action(description='Deactivate selected accounts')
    def deactivate_users(self, request, queryset):
        """Deactivate accounts, never superusers."""
        count = queryset.filter(is_superuser=False).update(is_active=False)
        self.message_user(request, f'Deactivated {count} account(s).')

    actions = ['deactivate_users']
