"""
Dashboard Queries
=================

Read-only aggregations behind the admin dashboard, the investor portal
and the vehicle tax reminder list.

Classes:
    DashboardQueries: Static methods returning plain dictionaries and lists.

Example:
    Overview scoped to a single investor::

        from apps.dashboard.queries import DashboardQueries

        data = DashboardQueries.dashboard_overview(investor_id=investor.id)
        print(data['total_investor_profit'])

Note:
    Nothing here writes to the database. Money values are returned as
    Decimal and left to the serializers to format.
"""

from datetime import date, timedelta
from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.investors.models import Investor
from apps.transactions.models import (
    PaymentHistory,
    ProfitSharing,
    Transaction,
    TransactionStatus,
)
from apps.units.models import Unit, UnitStatus

ZERO = Decimal('0.00')
MONTHLY_STATS_MONTHS = 12
INVESTOR_PAYMENT_MONTHS = 6
RECENT_TRANSACTIONS_LIMIT = 5
DEFAULT_REMINDER_DAYS = 30


def month_starts(today, count):
    """
    First day of the last ``count`` months, oldest first, ending with today's month.
    """
    year, month = today.year, today.month
    starts = []
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(starts))


class DashboardQueries:
    """
    Aggregations for dashboard endpoints.

    Methods:
        dashboard_overview: Totals, per-investor rows and monthly margins.
        investor_summary: One investor's capital, profit and payouts.
        tax_reminders: Available units with a tax due date coming up.
    """

    @staticmethod
    def dashboard_overview(investor_id=None, today=None):
        """
        Aggregate the business overview, optionally scoped to one investor.

        Args:
            investor_id (UUID, optional): Restrict totals to this investor's units.
            today (date, optional): Reference date for the monthly series.

        Returns:
            dict: A dictionary containing:
                - active_units (int): Units with status AVAILABLE.
                - completed_transactions (int): COMPLETED transactions.
                - total_margin (Decimal): Summed net margin.
                - total_investor_profit (Decimal): Summed investor share.
                - total_manager_profit (Decimal): Summed manager share.
                - total_capital_deployed (Decimal): Investor capital tied up
                  in transactions still on process.
                - investor_stats (list): One row per investor, or only the
                  scoped investor when investor_id is given.
                - monthly_stats (list): Margin per month of sale, last 12 months.
                - unit_status_distribution (list): Unit count per status.
                - recent_transactions (list): Latest five transactions.
        """
        today = today or timezone.localdate()

        units = Unit.objects.all()
        transactions = Transaction.objects.all()
        sharings = ProfitSharing.objects.all()
        if investor_id is not None:
            units = units.filter(investor_id=investor_id)
            transactions = transactions.filter(unit__investor_id=investor_id)
            sharings = sharings.filter(transaction__unit__investor_id=investor_id)

        profit_totals = sharings.aggregate(
            total_margin=Coalesce(Sum('net_margin'), ZERO),
            total_investor_profit=Coalesce(Sum('investor_profit_amount'), ZERO),
            total_manager_profit=Coalesce(Sum('manager_profit_amount'), ZERO),
        )

        total_capital_deployed = ZERO
        active_transactions = transactions.filter(status=TransactionStatus.ON_PROCESS)
        for trx in active_transactions.only('buy_price', 'initial_investor_capital'):
            if trx.initial_investor_capital is not None:
                total_capital_deployed += trx.initial_investor_capital
            else:
                total_capital_deployed += trx.buy_price

        return {
            'active_units': units.filter(status=UnitStatus.AVAILABLE).count(),
            'completed_transactions': transactions.filter(
                status=TransactionStatus.COMPLETED
            ).count(),
            **profit_totals,
            'total_capital_deployed': total_capital_deployed,
            'investor_stats': DashboardQueries._investor_stats(investor_id),
            'monthly_stats': DashboardQueries._monthly_stats(sharings, today),
            'unit_status_distribution': [
                {'status': row['status'], 'count': row['count']}
                for row in units.values('status').annotate(count=Count('id')).order_by('status')
            ],
            'recent_transactions': DashboardQueries._recent_transactions(transactions),
        }

    @staticmethod
    def _investor_stats(investor_id=None):
        completed = Q(units__transactions__status=TransactionStatus.COMPLETED)
        investors = Investor.objects.all()
        if investor_id is not None:
            investors = investors.filter(id=investor_id)
        investors = investors.annotate(
            active_units=Count(
                'units',
                filter=Q(units__status=UnitStatus.AVAILABLE),
                distinct=True,
            ),
            completed_transactions=Count(
                'units__transactions',
                filter=completed,
                distinct=True,
            ),
            total_profit=Coalesce(
                Sum(
                    'units__transactions__profit_sharing__investor_profit_amount',
                    filter=completed,
                ),
                ZERO,
            ),
            total_capital=Coalesce(
                Sum(
                    'units__transactions__profit_sharing__total_capital_investor',
                    filter=completed,
                ),
                ZERO,
            ),
        ).order_by('name')

        return [
            {
                'id': investor.id,
                'name': investor.name,
                'active_units': investor.active_units,
                'completed_transactions': investor.completed_transactions,
                'total_profit': investor.total_profit,
                'total_capital': investor.total_capital,
            }
            for investor in investors
        ]

    @staticmethod
    def _monthly_stats(sharings, today):
        months = month_starts(today, MONTHLY_STATS_MONTHS)
        buckets = {
            start.strftime('%Y-%m'): {
                'month': start.strftime('%Y-%m'),
                'total_margin': ZERO,
                'investor_share': ZERO,
                'manager_share': ZERO,
            }
            for start in months
        }

        # Grouped by the month the unit was sold
        rows = sharings.filter(
            transaction__sell_date__gte=months[0],
            transaction__sell_date__lte=today,
        ).values_list(
            'transaction__sell_date',
            'net_margin',
            'investor_profit_amount',
            'manager_profit_amount',
        )
        for sell_date, margin, investor_share, manager_share in rows:
            bucket = buckets[sell_date.strftime('%Y-%m')]
            bucket['total_margin'] += margin
            bucket['investor_share'] += investor_share
            bucket['manager_share'] += manager_share

        return list(buckets.values())

    @staticmethod
    def _recent_transactions(transactions):
        recent = transactions.select_related('unit').order_by('-created_at')[:RECENT_TRANSACTIONS_LIMIT]
        rows = []
        for trx in recent:
            sold = trx.status == TransactionStatus.COMPLETED
            rows.append({
                'id': trx.id,
                'code': trx.transaction_code,
                'unit_name': trx.unit.name,
                'type': 'sell' if sold else 'buy',
                'amount': (trx.sell_price or ZERO) if sold else trx.buy_price,
                'date': (trx.sell_date or trx.updated_at.date()) if sold else trx.buy_date,
                'status': trx.status,
            })
        return rows

    @staticmethod
    def investor_summary(investor_id, today=None):
        """
        Summarize one investor's position for the investor portal.

        Total invested counts each funded unit once, using the capital of
        its first transaction (the investor capital override when set,
        otherwise the buy price). Units without transactions add nothing.

        Args:
            investor_id (UUID): The investor's unique identifier.
            today (date, optional): Reference date for the payment series.

        Returns:
            dict: total_invested, total_profit, total_received,
            active_units_count, total_units_count and monthly_payments
            (last six months including the current one).

        Raises:
            Investor.DoesNotExist: If no investor has this ID.
        """
        today = today or timezone.localdate()
        investor = Investor.objects.get(id=investor_id)

        total_invested = ZERO
        units = investor.units.prefetch_related('transactions')
        for unit in units:
            first = min(
                unit.transactions.all(),
                key=lambda trx: (trx.buy_date, trx.created_at),
                default=None,
            )
            if first is None:
                continue
            if first.initial_investor_capital is not None:
                total_invested += first.initial_investor_capital
            else:
                total_invested += first.buy_price

        total_profit = ProfitSharing.objects.filter(
            transaction__unit__investor=investor,
            investor_profit_amount__gt=0,
        ).aggregate(
            total=Coalesce(Sum('investor_profit_amount'), ZERO)
        )['total']

        payments = PaymentHistory.objects.filter(investor=investor)
        total_received = payments.aggregate(
            total=Coalesce(Sum('amount'), ZERO)
        )['total']

        months = month_starts(today, INVESTOR_PAYMENT_MONTHS)
        monthly = {start.strftime('%Y-%m'): ZERO for start in months}
        in_range = payments.filter(
            payment_date__gte=months[0],
            payment_date__lte=today,
        ).values_list('payment_date', 'amount')
        for payment_date, amount in in_range:
            monthly[payment_date.strftime('%Y-%m')] += amount

        return {
            'investor_id': investor.id,
            'investor_name': investor.name,
            'total_invested': total_invested,
            'total_profit': total_profit,
            'total_received': total_received,
            'active_units_count': investor.units.filter(status=UnitStatus.AVAILABLE).count(),
            'total_units_count': investor.units.count(),
            'monthly_payments': [
                {'month': month, 'income': income}
                for month, income in monthly.items()
            ],
        }

    @staticmethod
    def tax_reminders(days=DEFAULT_REMINDER_DAYS, today=None, investor_id=None):
        """
        List available units whose tax falls due within ``days`` of today.

        Args:
            days (int): Size of the look-ahead window, inclusive.
            today (date, optional): Start of the window.
            investor_id (UUID, optional): Only this investor's units.

        Returns:
            list[dict]: Units ordered by due date, each with id, code, name,
            plate_number, tax_due_date, days_left and investor_name.
        """
        today = today or timezone.localdate()
        until = today + timedelta(days=days)

        units = Unit.objects.filter(
            status=UnitStatus.AVAILABLE,
            tax_due_date__gte=today,
            tax_due_date__lte=until,
        )
        if investor_id is not None:
            units = units.filter(investor_id=investor_id)
        units = units.select_related('investor').order_by('tax_due_date', 'code')

        return [
            {
                'id': unit.id,
                'code': unit.code,
                'name': unit.name,
                'plate_number': unit.plate_number,
                'tax_due_date': unit.tax_due_date,
                'days_left': (unit.tax_due_date - today).days,
                'investor_name': unit.investor.name,
            }
            for unit in units
        ]
