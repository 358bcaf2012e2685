"""
Serializers for the dashboard app.

Input serializers validate query parameters; response serializers
document and format the aggregated output.
"""

from rest_framework import serializers

from apps.units.models import UnitStatus
from apps.transactions.models import TransactionStatus
from .queries import DEFAULT_REMINDER_DAYS


def money(**kwargs):
    return serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True, **kwargs)


# =============================================================================
# Input Serializers (Query Parameter Validation)
# =============================================================================

class OverviewQuerySerializer(serializers.Serializer):
    """
    Validate dashboard query parameters.

    Query Parameters:
        investor (UUID): Scope totals to one investor (admins only)
    """

    investor = serializers.UUIDField(required=False)


class RemindersQuerySerializer(serializers.Serializer):
    """
    Validate reminder query parameters.

    Query Parameters:
        days (int): Look-ahead window in days (default 30, max 366)
    """

    days = serializers.IntegerField(
        required=False,
        default=DEFAULT_REMINDER_DAYS,
        min_value=0,
        max_value=366,
    )


# =============================================================================
# Response Serializers
# =============================================================================

class InvestorStatsSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    active_units = serializers.IntegerField()
    completed_transactions = serializers.IntegerField()
    total_profit = money()
    total_capital = money()


class MonthlyStatsSerializer(serializers.Serializer):
    month = serializers.CharField()
    total_margin = money()
    investor_share = money()
    manager_share = money()


class UnitStatusCountSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=UnitStatus.choices)
    count = serializers.IntegerField()


class RecentTransactionSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    code = serializers.CharField()
    unit_name = serializers.CharField()
    type = serializers.CharField()
    amount = money()
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=TransactionStatus.choices)


class DashboardOverviewSerializer(serializers.Serializer):
    """Dashboard overview response."""

    active_units = serializers.IntegerField()
    completed_transactions = serializers.IntegerField()
    total_margin = money()
    total_investor_profit = money()
    total_manager_profit = money()
    total_capital_deployed = money()
    investor_stats = InvestorStatsSerializer(many=True)
    monthly_stats = MonthlyStatsSerializer(many=True)
    unit_status_distribution = UnitStatusCountSerializer(many=True)
    recent_transactions = RecentTransactionSerializer(many=True)


class MonthlyPaymentSerializer(serializers.Serializer):
    month = serializers.CharField()
    income = money()


class InvestorSummarySerializer(serializers.Serializer):
    """Investor portal summary response."""

    investor_id = serializers.UUIDField()
    investor_name = serializers.CharField()
    total_invested = money()
    total_profit = money()
    total_received = money()
    active_units_count = serializers.IntegerField()
    total_units_count = serializers.IntegerField()
    monthly_payments = MonthlyPaymentSerializer(many=True)


class TaxReminderSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    code = serializers.CharField()
    name = serializers.CharField()
    plate_number = serializers.CharField()
    tax_due_date = serializers.DateField()
    days_left = serializers.IntegerField()
    investor_name = serializers.CharField()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
