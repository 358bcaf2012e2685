"""
Cost management.

Costs can be added, edited and removed while a transaction is in
process. Once it is completed the capital has been snapshotted into the
profit sharing record, so its costs are frozen until it is reverted.
"""

import logging
from uuid import UUID

from django.db import transaction

from apps.activity.models import ActivityAction, ActivityEntity
from apps.activity.services import log_activity_on_commit
from apps.transactions.models import Cost, CostType, Payer, Transaction

from .calculations import to_decimal
from .exceptions import (
    EngineValidationError,
    TransactionLockedError,
    CostNotFoundError,
)
from .lifecycle import UNCHANGED, lock_transaction

logger = logging.getLogger(__name__)


def _lock_editable_transaction(transaction_id: UUID) -> Transaction:
    trx = lock_transaction(transaction_id)
    if trx.is_completed:
        raise TransactionLockedError(
            f"Costs of completed transaction {trx.transaction_code} can't be changed"
        )
    return trx


def _validate_cost_fields(*, cost_type=None, payer=None, amount=None):
    if cost_type is not None and cost_type not in CostType.values:
        raise EngineValidationError(f"Unknown cost type: {cost_type}")
    if payer is not None and payer not in Payer.values:
        raise EngineValidationError(f"Unknown payer: {payer}")
    if amount is not None and to_decimal(amount) < 0:
        raise EngineValidationError("Cost amount can't be negative")


def _get_cost(trx: Transaction, cost_id: UUID) -> Cost:
    try:
        return Cost.objects.select_for_update().get(id=cost_id, transaction=trx)
    except Cost.DoesNotExist:
        raise CostNotFoundError(
            f"Cost with ID {cost_id} not found on transaction {trx.transaction_code}"
        )


@transaction.atomic
def add_cost(
    *,
    transaction_id: UUID,
    payer: str,
    amount,
    cost_type: str = CostType.OTHER,
    description: str = '',
    date=None,
    user=None
) -> Cost:
    """
    Add an operational cost to an in-process transaction.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        TransactionLockedError: If the transaction is completed
        EngineValidationError: If payer or cost type is unknown, or amount is negative
    """
    if payer is None or amount is None:
        raise EngineValidationError("Payer and amount are required")
    _validate_cost_fields(cost_type=cost_type, payer=payer, amount=amount)

    trx = _lock_editable_transaction(transaction_id)

    cost = Cost.objects.create(
        transaction=trx,
        cost_type=cost_type or CostType.OTHER,
        payer=payer,
        amount=to_decimal(amount),
        description=description or '',
        date=date,
    )

    logger.info(
        "Added %s cost of %s paid by %s to %s",
        cost.cost_type, cost.amount, cost.payer, trx.transaction_code,
    )
    log_activity_on_commit(
        action=ActivityAction.CREATE,
        entity=ActivityEntity.COST,
        entity_id=cost.id,
        details=f"Added {cost.get_cost_type_display()} cost of {cost.amount} to {trx.transaction_code}",
        user=user,
    )
    return cost


@transaction.atomic
def update_cost(
    *,
    transaction_id: UUID,
    cost_id: UUID,
    cost_type: str = None,
    payer: str = None,
    amount=None,
    description: str = None,
    date=UNCHANGED,
    user=None
) -> Cost:
    """
    Edit a cost of an in-process transaction. Only passed fields change.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        CostNotFoundError: If the cost doesn't belong to the transaction
        TransactionLockedError: If the transaction is completed
        EngineValidationError: If payer or cost type is unknown, or amount is negative
    """
    _validate_cost_fields(cost_type=cost_type, payer=payer, amount=amount)

    trx = _lock_editable_transaction(transaction_id)
    cost = _get_cost(trx, cost_id)

    update_fields = []

    if cost_type is not None:
        cost.cost_type = cost_type
        update_fields.append('cost_type')

    if payer is not None:
        cost.payer = payer
        update_fields.append('payer')

    if amount is not None:
        cost.amount = to_decimal(amount)
        update_fields.append('amount')

    if description is not None:
        cost.description = description
        update_fields.append('description')

    if date is not UNCHANGED:
        cost.date = date
        update_fields.append('date')

    if update_fields:
        update_fields.append('updated_at')
        cost.save(update_fields=update_fields)
        log_activity_on_commit(
            action=ActivityAction.UPDATE,
            entity=ActivityEntity.COST,
            entity_id=cost.id,
            details=f"Updated {cost.get_cost_type_display()} cost on {trx.transaction_code}",
            user=user,
        )

    return cost


@transaction.atomic
def delete_cost(*, transaction_id: UUID, cost_id: UUID, user=None) -> None:
    """
    Remove a cost from an in-process transaction.

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        CostNotFoundError: If the cost doesn't belong to the transaction
        TransactionLockedError: If the transaction is completed
    """
    trx = _lock_editable_transaction(transaction_id)
    cost = _get_cost(trx, cost_id)
    cost_pk = cost.id
    label = cost.get_cost_type_display()

    cost.delete()

    logger.info("Deleted %s cost %s from %s", label, cost_pk, trx.transaction_code)
    log_activity_on_commit(
        action=ActivityAction.DELETE,
        entity=ActivityEntity.COST,
        entity_id=cost_pk,
        details=f"Deleted {label} cost from {trx.transaction_code}",
        user=user,
    )
