"""
Payment recording and reconciliation.

Payments are appended to a transaction's history; each new payment
reconciles the transaction's payment status against the investor's
profit amount. History rows are never edited by the engine.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from django.db import transaction

from apps.activity.models import ActivityAction, ActivityEntity
from apps.activity.services import log_activity_on_commit
from apps.notifications.services import notify_payment_recorded_on_commit
from apps.transactions.models import PaymentHistory, PaymentMethod

from .calculations import reconcile_payment, to_decimal
from .exceptions import EngineValidationError
from .lifecycle import get_transaction_by_id, lock_transaction, investor_should_receive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    payment: PaymentHistory
    payment_status: str
    total_paid: Decimal


@dataclass(frozen=True)
class PaymentSummary:
    investor_should_receive: Decimal
    total_paid: Decimal
    remaining: Decimal
    payment_status: str


@transaction.atomic
def record_payment(
    *,
    transaction_id: UUID,
    amount,
    payment_date: date,
    method: str,
    proof_image_url: str = None,
    notes: str = '',
    user=None
) -> PaymentResult:
    """
    Record a payout to the unit's investor and reconcile payment status.

    A transaction that has no profit sharing yet is owed nothing, so any
    payment against it reconciles to PAID.

    Args:
        transaction_id: UUID of the transaction
        amount: Amount paid, must be positive
        payment_date: Date of the payout
        method: PaymentMethod value
        proof_image_url: Optional link to a transfer receipt
        notes: Free text
        user: Acting user for the activity log

    Returns:
        PaymentResult with the created payment, new status and running total

    Raises:
        TransactionNotFoundError: If transaction doesn't exist
        EngineValidationError: If amount is not positive or method is unknown
    """
    if amount is None or to_decimal(amount) <= 0:
        raise EngineValidationError("Payment amount must be greater than zero")
    if method not in PaymentMethod.values:
        raise EngineValidationError(f"Unknown payment method: {method}")
    if payment_date is None:
        raise EngineValidationError("Payment date is required")

    trx = lock_transaction(transaction_id)
    investor = trx.unit.investor

    payment = PaymentHistory.objects.create(
        transaction=trx,
        investor=investor,
        amount=to_decimal(amount),
        payment_date=payment_date,
        method=method,
        proof_image_url=proof_image_url or '',
        notes=notes or '',
    )

    total_paid = trx.get_total_paid()
    trx.payment_status = reconcile_payment(investor_should_receive(trx), total_paid)
    trx.save(update_fields=['payment_status', 'updated_at'])

    logger.info(
        "Recorded payment of %s on %s, total paid %s, status %s",
        payment.amount, trx.transaction_code, total_paid, trx.payment_status,
    )
    log_activity_on_commit(
        action=ActivityAction.CREATE,
        entity=ActivityEntity.PAYMENT,
        entity_id=payment.id,
        details=f"Paid {payment.amount} to {investor.name} for {trx.transaction_code}",
        user=user,
    )
    notify_payment_recorded_on_commit(investor.id, trx.id, payment.amount, proof_image_url)

    return PaymentResult(
        payment=payment,
        payment_status=trx.payment_status,
        total_paid=total_paid,
    )


def get_payment_summary(*, transaction_id: UUID) -> PaymentSummary:
    """Compute what the investor is owed and has received so far."""
    trx = get_transaction_by_id(transaction_id)
    should_receive = investor_should_receive(trx)
    total_paid = trx.get_total_paid()

    return PaymentSummary(
        investor_should_receive=should_receive,
        total_paid=total_paid,
        remaining=should_receive - total_paid,
        payment_status=reconcile_payment(should_receive, total_paid),
    )
