"""
Transaction lifecycle service.

Moves transactions between ON_PROCESS and COMPLETED and keeps the unit
status, the profit sharing snapshot and the payment status consistent
with each move. Every mutation runs in one atomic block with the
transaction row locked; activity logs and investor notifications are
scheduled to run only after commit.
"""

import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from django.conf import settings
from django.db import transaction, IntegrityError

from apps.activity.models import ActivityAction, ActivityEntity
from apps.activity.services import log_activity_on_commit
from apps.notifications.services import notify_unit_sold_on_commit
from apps.transactions.models import (
    Transaction,
    TransactionStatus,
    ProfitSharing,
)
from apps.units.models import Unit, UnitStatus

from .calculations import (
    ShareSplit,
    aggregate_costs,
    resolve_capital,
    resolve_share_split,
    calculate_margin_and_split,
    split_profit,
    reconcile_payment,
    to_decimal,
)
from .codes import next_transaction_code
from .exceptions import (
    EngineValidationError,
    MissingSaleDataError,
    ActiveTransactionExistsError,
    TransactionAlreadyCompletedError,
    DuplicateTransactionCodeError,
    TransactionNotFoundError,
    UnitNotFoundError,
    ProfitSharingNotFoundError,
)

logger = logging.getLogger(__name__)


# Marks an optional argument the caller did not supply, so None can mean "clear it"
UNCHANGED = object()


@dataclass(frozen=True)
class FinalizeResult:
    transaction: Transaction
    profit_sharing: ProfitSharing


# =============================================================================
# Lookups
# =============================================================================

def get_transaction_by_id(transaction_id: UUID) -> Transaction:
    """
    Get a transaction with its unit and investor loaded.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
    """
    try:
        return (
            Transaction.objects
            .select_related('unit', 'unit__investor')
            .get(id=transaction_id)
        )
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")


def lock_transaction(transaction_id: UUID) -> Transaction:
    """Load and row-lock a transaction. Must be called inside an atomic block."""
    try:
        return (
            Transaction.objects
            .select_for_update()
            .select_related('unit', 'unit__investor')
            .get(id=transaction_id)
        )
    except Transaction.DoesNotExist:
        raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")


def _lock_unit(unit_id: UUID) -> Unit:
    try:
        return Unit.objects.select_for_update().get(id=unit_id)
    except Unit.DoesNotExist:
        raise UnitNotFoundError(f"Unit with ID {unit_id} not found")


def _has_other_active_transaction(unit_id: UUID, exclude_id=None) -> bool:
    qs = Transaction.objects.filter(unit_id=unit_id, status=TransactionStatus.ON_PROCESS)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()


def _default_investor_share(trx: Transaction):
    investor = trx.unit.investor
    if investor.margin_percentage is not None:
        return investor.margin_percentage
    return settings.DEFAULT_INVESTOR_SHARE


def investor_should_receive(trx: Transaction):
    amount = (
        ProfitSharing.objects
        .filter(transaction=trx)
        .values_list('investor_profit_amount', flat=True)
        .first()
    )
    return amount if amount is not None else to_decimal('0.00')


# =============================================================================
# Snapshot
# =============================================================================

def _build_profit_sharing(trx: Transaction, shares: ShareSplit) -> ProfitSharing:
    """
    Compute capital and split for a sold transaction and store the snapshot.

    Creates the ProfitSharing row or replaces the existing one, then sets
    ``profit_status`` and ``payment_status`` on the (unsaved) transaction.
    """
    capital = resolve_capital(
        buy_price=trx.buy_price,
        initial_investor_capital=trx.initial_investor_capital,
        initial_manager_capital=trx.initial_manager_capital,
        cost_totals=aggregate_costs(trx.costs.all()),
    )
    split = calculate_margin_and_split(
        sell_price=trx.sell_price,
        total_capital=capital.total_capital,
        investor_share_percentage=shares.investor,
        manager_share_percentage=shares.manager,
    )

    profit_sharing, _ = ProfitSharing.objects.update_or_create(
        transaction=trx,
        defaults={
            'total_capital_investor': capital.total_capital_investor,
            'total_capital_manager': capital.total_capital_manager,
            'total_capital': capital.total_capital,
            'net_margin': split.net_margin,
            'investor_share_percentage': shares.investor,
            'manager_share_percentage': shares.manager,
            'investor_profit_amount': split.investor_profit_amount,
            'manager_profit_amount': split.manager_profit_amount,
        }
    )

    trx.profit_status = split.profit_status
    trx.payment_status = reconcile_payment(split.investor_profit_amount, trx.get_total_paid())
    return profit_sharing


def _require_sale_data(sell_date, sell_price):
    if sell_date is None:
        raise MissingSaleDataError("Sell date is required to finalize a transaction")
    if sell_price is None or to_decimal(sell_price) <= 0:
        raise MissingSaleDataError("A positive sell price is required to finalize a transaction")


# =============================================================================
# Operations
# =============================================================================

@transaction.atomic
def create_transaction(
    *,
    unit_id: UUID,
    buy_date: date,
    buy_price,
    transaction_code: str = None,
    initial_investor_capital=None,
    initial_manager_capital=None,
    notes: str = '',
    user=None
) -> Transaction:
    """
    Open a new buy-then-sell cycle for a unit.

    The unit row is locked while checking for an active transaction; the
    partial unique constraint catches anything that slips past the check.

    Args:
        unit_id: UUID of the unit being bought
        buy_date: Purchase date
        buy_price: Purchase price, must be positive
        transaction_code: Reference code, generated when omitted
        initial_investor_capital: Investor capital override
        initial_manager_capital: Manager capital override
        notes: Free text
        user: Acting user for the activity log

    Returns:
        Created Transaction instance

    Raises:
        UnitNotFoundError: If unit doesn't exist
        ActiveTransactionExistsError: If the unit already has an ON_PROCESS transaction
        DuplicateTransactionCodeError: If the code is already taken
        EngineValidationError: If the buy price is not positive
    """
    if buy_price is None or to_decimal(buy_price) <= 0:
        raise EngineValidationError("Buy price must be greater than zero")

    unit = _lock_unit(unit_id)

    if _has_other_active_transaction(unit.id):
        raise ActiveTransactionExistsError(
            f"Unit {unit.code} already has a transaction in process"
        )

    code = transaction_code or next_transaction_code()

    try:
        with transaction.atomic():
            trx = Transaction.objects.create(
                transaction_code=code,
                unit=unit,
                buy_date=buy_date,
                buy_price=buy_price,
                initial_investor_capital=initial_investor_capital,
                initial_manager_capital=initial_manager_capital,
                notes=notes or '',
            )
    except IntegrityError:
        # Unique transaction code, or the unit's active transaction constraint
        if Transaction.objects.filter(transaction_code=code).exists():
            raise DuplicateTransactionCodeError(f"Transaction code {code} is already in use")
        raise ActiveTransactionExistsError(
            f"Unit {unit.code} already has a transaction in process"
        )

    logger.info("Created transaction %s for unit %s", trx.transaction_code, unit.code)
    log_activity_on_commit(
        action=ActivityAction.CREATE,
        entity=ActivityEntity.TRANSACTION,
        entity_id=trx.id,
        details=f"Created transaction {trx.transaction_code} for unit {unit.code}",
        user=user,
    )
    return trx


@transaction.atomic
def finalize_transaction(
    *,
    transaction_id: UUID,
    sell_date: date = None,
    sell_price=None,
    investor_share_percentage=None,
    manager_share_percentage=None,
    loss_bearer: str = None,
    notes: str = None,
    user=None
) -> FinalizeResult:
    """
    Record the sale of a unit and snapshot the profit split.

    Share percentages fall back to the investor's margin percentage and
    its complement. Within one atomic block this writes the profit
    sharing record, marks the transaction COMPLETED, marks the unit SOLD
    and recomputes the payment status. The investor is notified after
    commit.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        TransactionAlreadyCompletedError: If the transaction is already COMPLETED
        MissingSaleDataError: If sell date or a positive sell price is missing
        InvalidShareSplitError: If the shares are out of range or don't sum to 100
    """
    trx = lock_transaction(transaction_id)

    if trx.is_completed:
        raise TransactionAlreadyCompletedError(
            f"Transaction {trx.transaction_code} is already completed"
        )

    _require_sale_data(sell_date, sell_price)

    shares = resolve_share_split(
        investor_share_percentage,
        manager_share_percentage,
        default_investor_share=_default_investor_share(trx),
    )

    trx.sell_date = sell_date
    trx.sell_price = to_decimal(sell_price)
    trx.status = TransactionStatus.COMPLETED
    update_fields = [
        'sell_date', 'sell_price', 'status', 'profit_status',
        'payment_status', 'updated_at',
    ]
    if loss_bearer is not None:
        trx.loss_bearer = loss_bearer
        update_fields.append('loss_bearer')
    if notes is not None:
        trx.notes = notes
        update_fields.append('notes')

    profit_sharing = _build_profit_sharing(trx, shares)
    trx.save(update_fields=update_fields)

    unit = trx.unit
    unit.status = UnitStatus.SOLD
    unit.save(update_fields=['status', 'updated_at'])

    logger.info(
        "Finalized transaction %s: margin %s, investor %s, manager %s",
        trx.transaction_code,
        profit_sharing.net_margin,
        profit_sharing.investor_profit_amount,
        profit_sharing.manager_profit_amount,
    )
    log_activity_on_commit(
        action=ActivityAction.UPDATE,
        entity=ActivityEntity.TRANSACTION,
        entity_id=trx.id,
        details=f"Sold unit {unit.code} in transaction {trx.transaction_code} for {trx.sell_price}",
        user=user,
    )
    notify_unit_sold_on_commit(unit.investor_id, trx.id)

    return FinalizeResult(transaction=trx, profit_sharing=profit_sharing)


@transaction.atomic
def revert_transaction(*, transaction_id: UUID, user=None) -> Transaction:
    """
    Take a COMPLETED transaction back to ON_PROCESS.

    Deletes the profit sharing snapshot, clears the profit status and
    makes the unit available again. Sell data and payments are kept.
    Reverting a transaction that is already in process changes nothing.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        ActiveTransactionExistsError: If the unit has another ON_PROCESS transaction
    """
    trx = lock_transaction(transaction_id)

    if not trx.is_completed:
        return trx

    unit = _lock_unit(trx.unit_id)

    if _has_other_active_transaction(unit.id, exclude_id=trx.id):
        raise ActiveTransactionExistsError(
            f"Unit {unit.code} already has another transaction in process"
        )

    ProfitSharing.objects.filter(transaction=trx).delete()

    trx.status = TransactionStatus.ON_PROCESS
    trx.profit_status = None
    try:
        trx.save(update_fields=['status', 'profit_status', 'updated_at'])
    except IntegrityError:
        raise ActiveTransactionExistsError(
            f"Unit {unit.code} already has another transaction in process"
        )

    unit.status = UnitStatus.AVAILABLE
    unit.save(update_fields=['status', 'updated_at'])
    trx.unit = unit

    logger.info("Reverted transaction %s to in process", trx.transaction_code)
    log_activity_on_commit(
        action=ActivityAction.UPDATE,
        entity=ActivityEntity.TRANSACTION,
        entity_id=trx.id,
        details=f"Reverted transaction {trx.transaction_code} to in process",
        user=user,
    )
    return trx


@transaction.atomic
def update_shares(
    *,
    transaction_id: UUID,
    investor_share_percentage=None,
    manager_share_percentage=None,
    user=None
) -> ProfitSharing:
    """
    Change the share percentages of an existing profit sharing record.

    Amounts are recomputed from the stored net margin; capital is not
    touched. The payment status is reconciled against the new amount.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        ProfitSharingNotFoundError: If the transaction has no profit sharing yet
        InvalidShareSplitError: If the shares are out of range or don't sum to 100
    """
    trx = lock_transaction(transaction_id)

    try:
        profit_sharing = ProfitSharing.objects.select_for_update().get(transaction=trx)
    except ProfitSharing.DoesNotExist:
        raise ProfitSharingNotFoundError(
            f"Transaction {trx.transaction_code} has no profit sharing"
        )

    shares = resolve_share_split(
        investor_share_percentage,
        manager_share_percentage,
        default_investor_share=profit_sharing.investor_share_percentage,
    )
    investor_amount, manager_amount = split_profit(profit_sharing.net_margin, shares.investor)

    profit_sharing.investor_share_percentage = shares.investor
    profit_sharing.manager_share_percentage = shares.manager
    profit_sharing.investor_profit_amount = investor_amount
    profit_sharing.manager_profit_amount = manager_amount
    profit_sharing.save(update_fields=[
        'investor_share_percentage',
        'manager_share_percentage',
        'investor_profit_amount',
        'manager_profit_amount',
        'updated_at',
    ])

    trx.payment_status = reconcile_payment(investor_amount, trx.get_total_paid())
    trx.save(update_fields=['payment_status', 'updated_at'])

    logger.info(
        "Updated shares of %s to %s/%s",
        trx.transaction_code, shares.investor, shares.manager,
    )
    log_activity_on_commit(
        action=ActivityAction.UPDATE,
        entity=ActivityEntity.TRANSACTION,
        entity_id=trx.id,
        details=(
            f"Changed profit sharing of {trx.transaction_code} to "
            f"{shares.investor}% investor / {shares.manager}% manager"
        ),
        user=user,
    )
    return profit_sharing


@transaction.atomic
def update_transaction(
    *,
    transaction_id: UUID,
    transaction_code=UNCHANGED,
    buy_date=UNCHANGED,
    buy_price=UNCHANGED,
    initial_investor_capital=UNCHANGED,
    initial_manager_capital=UNCHANGED,
    sell_date=UNCHANGED,
    sell_price=UNCHANGED,
    loss_bearer=UNCHANGED,
    notes=UNCHANGED,
    user=None
) -> Transaction:
    """
    Edit transaction details.

    Only arguments that are passed are changed. When a COMPLETED
    transaction's prices or capital overrides change, the profit sharing
    snapshot is rebuilt with its current share percentages and the
    payment status is reconciled again.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        DuplicateTransactionCodeError: If the new code is already taken
        EngineValidationError: If the buy price is not positive
        MissingSaleDataError: If sell data of a COMPLETED transaction is removed
    """
    trx = lock_transaction(transaction_id)

    changes = {
        'transaction_code': transaction_code,
        'buy_date': buy_date,
        'buy_price': buy_price,
        'initial_investor_capital': initial_investor_capital,
        'initial_manager_capital': initial_manager_capital,
        'sell_date': sell_date,
        'sell_price': sell_price,
        'loss_bearer': loss_bearer,
        'notes': notes,
    }
    changes = {field: value for field, value in changes.items() if value is not UNCHANGED}

    if 'transaction_code' in changes:
        code = changes['transaction_code']
        if (
            Transaction.objects
            .filter(transaction_code=code)
            .exclude(id=trx.id)
            .exists()
        ):
            raise DuplicateTransactionCodeError(f"Transaction code {code} is already in use")

    if 'buy_price' in changes:
        if changes['buy_price'] is None or to_decimal(changes['buy_price']) <= 0:
            raise EngineValidationError("Buy price must be greater than zero")

    if trx.is_completed:
        _require_sale_data(
            changes.get('sell_date', trx.sell_date),
            changes.get('sell_price', trx.sell_price),
        )

    if 'notes' in changes and changes['notes'] is None:
        changes['notes'] = ''

    pricing_fields = (
        'buy_price', 'initial_investor_capital', 'initial_manager_capital', 'sell_price',
    )
    pricing_changed = False
    update_fields = []
    for field, value in changes.items():
        if field in pricing_fields and value is not None:
            value = to_decimal(value)
        if getattr(trx, field) != value:
            if field in pricing_fields:
                pricing_changed = True
            setattr(trx, field, value)
            update_fields.append(field)

    if not update_fields:
        return trx

    if trx.is_completed and pricing_changed:
        try:
            current = ProfitSharing.objects.get(transaction=trx)
            shares = ShareSplit(
                investor=current.investor_share_percentage,
                manager=current.manager_share_percentage,
            )
        except ProfitSharing.DoesNotExist:
            shares = resolve_share_split(default_investor_share=_default_investor_share(trx))
        _build_profit_sharing(trx, shares)
        update_fields.extend(['profit_status', 'payment_status'])

    update_fields.append('updated_at')
    try:
        trx.save(update_fields=update_fields)
    except IntegrityError:
        raise DuplicateTransactionCodeError(
            f"Transaction code {trx.transaction_code} is already in use"
        )

    logger.info("Updated transaction %s: %s", trx.transaction_code, ', '.join(update_fields))
    log_activity_on_commit(
        action=ActivityAction.UPDATE,
        entity=ActivityEntity.TRANSACTION,
        entity_id=trx.id,
        details=f"Updated transaction {trx.transaction_code}",
        user=user,
    )
    return trx


def set_transaction_status(
    *,
    transaction_id: UUID,
    status: str,
    sell_date: date = None,
    sell_price=None,
    investor_share_percentage=None,
    manager_share_percentage=None,
    loss_bearer: str = None,
    user=None
) -> Transaction:
    """
    Move a transaction to the requested status.

    COMPLETED finalizes the transaction, taking sell data from the
    arguments or, when omitted, from what is already stored. ON_PROCESS
    reverts it. Requesting COMPLETED on a completed transaction only
    applies share changes, if any were given; otherwise requesting the
    current status is a no-op.

    Raises:
        EngineValidationError: If status is not a known transaction status
        plus anything finalize_transaction, revert_transaction or
        update_shares raise
    """
    if status not in TransactionStatus.values:
        raise EngineValidationError(f"Unknown transaction status: {status}")

    trx = get_transaction_by_id(transaction_id)

    if status == TransactionStatus.ON_PROCESS:
        return revert_transaction(transaction_id=trx.id, user=user)

    if trx.is_completed:
        if investor_share_percentage is None and manager_share_percentage is None:
            return trx
        update_shares(
            transaction_id=trx.id,
            investor_share_percentage=investor_share_percentage,
            manager_share_percentage=manager_share_percentage,
            user=user,
        )
        return get_transaction_by_id(trx.id)

    result = finalize_transaction(
        transaction_id=trx.id,
        sell_date=sell_date if sell_date is not None else trx.sell_date,
        sell_price=sell_price if sell_price is not None else trx.sell_price,
        investor_share_percentage=investor_share_percentage,
        manager_share_percentage=manager_share_percentage,
        loss_bearer=loss_bearer if loss_bearer is not None else trx.loss_bearer,
        user=user,
    )
    return result.transaction


@transaction.atomic
def delete_transaction(*, transaction_id: UUID, user=None) -> None:
    """
    Delete a transaction with its costs, profit sharing and payments.

    The unit becomes available again.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
    """
    trx = lock_transaction(transaction_id)
    unit = _lock_unit(trx.unit_id)
    trx_id = trx.id
    code = trx.transaction_code

    trx.delete()

    unit.status = UnitStatus.AVAILABLE
    unit.save(update_fields=['status', 'updated_at'])

    logger.info("Deleted transaction %s of unit %s", code, unit.code)
    log_activity_on_commit(
        action=ActivityAction.DELETE,
        entity=ActivityEntity.TRANSACTION,
        entity_id=trx_id,
        details=f"Deleted transaction {code} of unit {unit.code}",
        user=user,
    )
