"""
Profit Engine Calculations
==========================

Pure functions that turn a transaction's prices, costs and share
percentages into capital bases, net margin, profit split and payment
status. Nothing here touches the database; the lifecycle services feed
these functions with loaded records and persist the results.

All money is handled as ``Decimal``. Profit amounts are rounded to the
cent for the investor and the manager receives the residual, so the two
amounts always add up to the net margin exactly.

Example:
    Computing a sale's split::

        totals = aggregate_costs(transaction.costs.all())
        capital = resolve_capital(
            buy_price=Decimal('150000000'),
            initial_investor_capital=None,
            initial_manager_capital=None,
            cost_totals=totals,
        )
        split = calculate_margin_and_split(
            sell_price=Decimal('180000000'),
            total_capital=capital.total_capital,
            investor_share_percentage=Decimal('40'),
            manager_share_percentage=Decimal('60'),
        )
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

from django.conf import settings

from apps.transactions.models import Payer, PaymentStatus, ProfitStatus

from .exceptions import InvalidShareSplitError


ZERO = Decimal('0.00')
HUNDRED = Decimal('100')
CENT = Decimal('0.01')
DEFAULT_PAYMENT_TOLERANCE = Decimal('100')


@dataclass(frozen=True)
class CostTotals:
    investor_costs: Decimal
    manager_costs: Decimal
    total_costs: Decimal


@dataclass(frozen=True)
class CapitalBreakdown:
    total_capital_investor: Decimal
    total_capital_manager: Decimal
    total_capital: Decimal


@dataclass(frozen=True)
class MarginSplit:
    net_margin: Decimal
    profit_status: str
    investor_profit_amount: Decimal
    manager_profit_amount: Decimal


@dataclass(frozen=True)
class ShareSplit:
    investor: Decimal
    manager: Decimal


def to_decimal(value) -> Decimal:
    """Convert ints, strings and floats to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def aggregate_costs(costs: Iterable) -> CostTotals:
    """
    Sum costs per payer.

    Args:
        costs: Objects with ``payer`` and ``amount`` attributes
            (Cost instances or anything shaped like them).

    Returns:
        CostTotals with investor, manager and combined sums. An empty
        iterable yields zeros.

    Raises:
        ValueError: If a cost has a payer other than investor or manager.
    """
    investor_costs = ZERO
    manager_costs = ZERO

    for cost in costs:
        amount = to_decimal(cost.amount)
        if cost.payer == Payer.INVESTOR:
            investor_costs += amount
        elif cost.payer == Payer.MANAGER:
            manager_costs += amount
        else:
            raise ValueError(f"Unknown cost payer: {cost.payer!r}")

    return CostTotals(
        investor_costs=investor_costs,
        manager_costs=manager_costs,
        total_costs=investor_costs + manager_costs,
    )


def resolve_capital(
    *,
    buy_price,
    cost_totals: CostTotals,
    initial_investor_capital=None,
    initial_manager_capital=None,
) -> CapitalBreakdown:
    """
    Work out how much capital each party has in the transaction.

    The investor's base is the explicit override when one was declared,
    otherwise the full buy price. The manager's base is the declared
    override or zero. Each party's costs are added on top of its base.
    """
    if initial_investor_capital is not None:
        base_investor = to_decimal(initial_investor_capital)
    else:
        base_investor = to_decimal(buy_price)

    if initial_manager_capital is not None:
        base_manager = to_decimal(initial_manager_capital)
    else:
        base_manager = ZERO

    total_investor = base_investor + cost_totals.investor_costs
    total_manager = base_manager + cost_totals.manager_costs

    return CapitalBreakdown(
        total_capital_investor=total_investor,
        total_capital_manager=total_manager,
        total_capital=total_investor + total_manager,
    )


def classify_margin(net_margin) -> str:
    net_margin = to_decimal(net_margin)
    if net_margin > 0:
        return ProfitStatus.PROFIT
    if net_margin < 0:
        return ProfitStatus.LOSS
    return ProfitStatus.BREAK_EVEN


def split_profit(net_margin, investor_share_percentage) -> Tuple[Decimal, Decimal]:
    """
    Split a positive net margin between investor and manager.

    The investor's amount is rounded to the cent and the manager gets
    the residual. Losses and break-even margins split to (0, 0): the
    profit amounts are a bonus owed from margin, never a clawback.
    """
    net_margin = to_decimal(net_margin)
    if net_margin <= 0:
        return ZERO, ZERO

    investor_amount = (
        net_margin * to_decimal(investor_share_percentage) / HUNDRED
    ).quantize(CENT, rounding=ROUND_HALF_UP)
    manager_amount = net_margin - investor_amount
    return investor_amount, manager_amount


def validate_share_split(investor_share_percentage, manager_share_percentage) -> ShareSplit:
    """Check both shares are within 0-100 and add up to exactly 100."""
    investor = to_decimal(investor_share_percentage)
    manager = to_decimal(manager_share_percentage)

    for label, value in (('Investor', investor), ('Manager', manager)):
        if value < 0 or value > HUNDRED:
            raise InvalidShareSplitError(f"{label} share must be between 0 and 100, got {value}")

    if investor + manager != HUNDRED:
        raise InvalidShareSplitError(
            f"Investor and manager shares must sum to 100, got {investor} + {manager}"
        )

    return ShareSplit(investor=investor, manager=manager)


def resolve_share_split(
    investor_share_percentage=None,
    manager_share_percentage=None,
    *,
    default_investor_share=None,
) -> ShareSplit:
    """
    Pick the share percentages for a finalization.

    Explicit values win. A single explicit value gets its complement on
    the other side. With neither given, the investor's default share and
    its complement are used.

    Raises:
        InvalidShareSplitError: If nothing usable was supplied, a value
            is outside 0-100, or the two do not sum to 100.
    """
    investor = investor_share_percentage
    manager = manager_share_percentage

    if investor is None and manager is None:
        if default_investor_share is None:
            raise InvalidShareSplitError("No share percentages supplied and no default available")
        investor = to_decimal(default_investor_share)
        manager = HUNDRED - investor
    elif investor is None:
        investor = HUNDRED - to_decimal(manager)
    elif manager is None:
        manager = HUNDRED - to_decimal(investor)

    return validate_share_split(investor, manager)


def calculate_margin_and_split(
    *,
    sell_price,
    total_capital,
    investor_share_percentage,
    manager_share_percentage,
) -> MarginSplit:
    """
    Compute the net margin, its classification and the profit split.

    Raises:
        InvalidShareSplitError: If the shares do not sum to 100.
    """
    shares = validate_share_split(investor_share_percentage, manager_share_percentage)
    net_margin = to_decimal(sell_price) - to_decimal(total_capital)
    investor_amount, manager_amount = split_profit(net_margin, shares.investor)

    return MarginSplit(
        net_margin=net_margin,
        profit_status=classify_margin(net_margin),
        investor_profit_amount=investor_amount,
        manager_profit_amount=manager_amount,
    )


def payment_tolerance() -> Decimal:
    return to_decimal(getattr(settings, 'PAYMENT_TOLERANCE', DEFAULT_PAYMENT_TOLERANCE))


def reconcile_payment(should_receive, total_paid, tolerance: Optional[Decimal] = None) -> str:
    """
    Classify how much of the investor's profit has been paid out.

    A remaining balance at or below the tolerance counts as fully paid,
    which also covers overpayment. Otherwise any payment makes the
    status partial, and no payment leaves it unpaid.
    """
    if tolerance is None:
        tolerance = payment_tolerance()

    total_paid = to_decimal(total_paid)
    remaining = to_decimal(should_receive) - total_paid

    if remaining <= tolerance:
        return PaymentStatus.PAID
    if total_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID
