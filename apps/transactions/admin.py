from django.contrib import admin
from django.utils.html import format_html

from .models import Transaction, Cost, ProfitSharing, PaymentHistory, PaymentStatus


class CostInline(admin.TabularInline):
    """Inline admin for costs within a transaction."""
    model = Cost
    extra = 0
    fields = ['cost_type', 'payer', 'amount', 'description', 'date']


class ProfitSharingInline(admin.StackedInline):
    """Read-only profit split snapshot."""
    model = ProfitSharing
    extra = 0
    can_delete = False
    readonly_fields = [
        'total_capital_investor',
        'total_capital_manager',
        'total_capital',
        'net_margin',
        'investor_share_percentage',
        'manager_share_percentage',
        'investor_profit_amount',
        'manager_profit_amount',
    ]

    def has_add_permission(self, request, obj=None):
        """Snapshots are created when the sale is recorded."""
        return False


class PaymentHistoryInline(admin.TabularInline):
    model = PaymentHistory
    extra = 0
    fields = ['amount', 'payment_date', 'method', 'proof_image_url', 'notes']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """
    Admin interface for transactions.

    Editing prices here bypasses the profit engine, so sales, reverts
    and payouts should go through the API.
    """

    list_display = [
        'transaction_code',
        'unit',
        'buy_price',
        'sell_price',
        'status',
        'profit_status',
        'payment_badge',
        'created_at',
    ]
    list_filter = ['status', 'profit_status', 'payment_status', 'created_at']
    search_fields = ['transaction_code', 'unit__code', 'unit__name', 'unit__plate_number']
    readonly_fields = ['id', 'status', 'profit_status', 'payment_status', 'created_at', 'updated_at']
    list_select_related = ['unit']
    inlines = [CostInline, ProfitSharingInline, PaymentHistoryInline]

    def payment_badge(self, obj):
        """Display payment status as colored badge."""
        colors = {
            PaymentStatus.UNPAID: ('#E5C49A', '#2C1810'),
            PaymentStatus.PARTIAL: ('#A47449', 'white'),
            PaymentStatus.PAID: ('#6B8E5E', 'white'),
        }
        bg, fg = colors.get(obj.payment_status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_payment_status_display()
        )
    payment_badge.short_description = 'Payment'


@admin.register(PaymentHistory)
class PaymentHistoryAdmin(admin.ModelAdmin):
    list_display = ['transaction', 'investor', 'amount', 'payment_date', 'method']
    list_filter = ['method', 'payment_date']
    search_fields = ['transaction__transaction_code', 'investor__name']
    list_select_related = ['transaction', 'investor']
    readonly_fields = ['created_at']
