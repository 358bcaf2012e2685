"""
Service layer tests for the transaction lifecycle.

Tests cover:
- Opening transactions and the one-active-per-unit rule
- Finalizing a sale and the profit sharing snapshot
- Reverting, share edits, detail edits and deletion
- Atomicity: failed operations leave no partial writes
- After-commit side effects (activity log, notifications)
"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

from apps.activity.models import ActivityLog, ActivityAction, ActivityEntity
from apps.transactions.models import (
    Transaction,
    TransactionStatus,
    ProfitStatus,
    PaymentStatus,
    ProfitSharing,
    PaymentHistory,
    PaymentMethod,
    Cost,
    LossBearer,
)
from apps.transactions.services import (
    create_transaction,
    finalize_transaction,
    revert_transaction,
    update_shares,
    update_transaction,
    set_transaction_status,
    delete_transaction,
    get_transaction_by_id,
)
from apps.transactions.services.exceptions import (
    ActiveTransactionExistsError,
    TransactionAlreadyCompletedError,
    TransactionNotFoundError,
    UnitNotFoundError,
    MissingSaleDataError,
    InvalidShareSplitError,
    ProfitSharingNotFoundError,
    DuplicateTransactionCodeError,
    EngineValidationError,
)
from apps.units.models import UnitStatus


def sell(trx, price='180000000', **kwargs):
    kwargs.setdefault('sell_date', date(2024, 3, 1))
    return finalize_transaction(transaction_id=trx.id, sell_price=Decimal(price), **kwargs)


# =============================================================================
# Create
# =============================================================================

@pytest.mark.django_db
class TestCreateTransaction:
    """Tests for create_transaction()."""

    def test_create_success(self, unit, admin_user):
        trx = create_transaction(
            unit_id=unit.id,
            buy_date=date(2024, 1, 10),
            buy_price=Decimal('150000000'),
            transaction_code='TRX-2024-007',
            user=admin_user,
        )

        assert trx.status == TransactionStatus.ON_PROCESS
        assert trx.payment_status == PaymentStatus.UNPAID
        assert trx.profit_status is None
        assert trx.transaction_code == 'TRX-2024-007'
        assert trx.unit == unit

    def test_generates_code_when_omitted(self, unit):
        trx = create_transaction(
            unit_id=unit.id,
            buy_date=date(2024, 1, 10),
            buy_price=Decimal('150000000'),
        )

        assert trx.transaction_code.startswith('TRX-')
        assert trx.transaction_code.endswith('-001')

    def test_rejects_second_active_transaction(self, on_process_transaction, unit):
        with pytest.raises(ActiveTransactionExistsError):
            create_transaction(
                unit_id=unit.id,
                buy_date=date(2024, 2, 1),
                buy_price=Decimal('100000000'),
            )

        assert Transaction.objects.filter(unit=unit).count() == 1

    def test_allows_new_transaction_after_sale(self, on_process_transaction, unit):
        sell(on_process_transaction)

        trx = create_transaction(
            unit_id=unit.id,
            buy_date=date(2024, 4, 1),
            buy_price=Decimal('120000000'),
            transaction_code='TRX-2024-002',
        )

        assert trx.status == TransactionStatus.ON_PROCESS

    def test_unknown_unit(self):
        with pytest.raises(UnitNotFoundError):
            create_transaction(
                unit_id=uuid4(),
                buy_date=date(2024, 1, 10),
                buy_price=Decimal('1'),
            )

    def test_duplicate_code(self, on_process_transaction, second_unit):
        with pytest.raises(DuplicateTransactionCodeError):
            create_transaction(
                unit_id=second_unit.id,
                buy_date=date(2024, 1, 10),
                buy_price=Decimal('1'),
                transaction_code=on_process_transaction.transaction_code,
            )

        assert not Transaction.objects.filter(unit=second_unit).exists()

    def test_active_constraint_reported_when_check_is_passed(self, on_process_transaction, unit):
        # Another request opened the active transaction after the check ran
        with patch(
            'apps.transactions.services.lifecycle._has_other_active_transaction',
            return_value=False,
        ):
            with pytest.raises(ActiveTransactionExistsError):
                create_transaction(
                    unit_id=unit.id,
                    buy_date=date(2024, 2, 1),
                    buy_price=Decimal('100000000'),
                    transaction_code='TRX-2024-099',
                )

        assert Transaction.objects.filter(unit=unit).count() == 1

    def test_non_positive_buy_price(self, unit):
        with pytest.raises(EngineValidationError):
            create_transaction(unit_id=unit.id, buy_date=date(2024, 1, 10), buy_price=Decimal('0'))

    def test_logs_activity_after_commit(self, unit, admin_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            trx = create_transaction(
                unit_id=unit.id,
                buy_date=date(2024, 1, 10),
                buy_price=Decimal('150000000'),
                user=admin_user,
            )

        log = ActivityLog.objects.get(entity=ActivityEntity.TRANSACTION, entity_id=str(trx.id))
        assert log.action == ActivityAction.CREATE
        assert log.user == admin_user


# =============================================================================
# Finalize
# =============================================================================

@pytest.mark.django_db
class TestFinalizeTransaction:
    """Tests for finalize_transaction()."""

    def test_profitable_sale_snapshot(self, transaction_with_costs, unit):
        result = sell(
            transaction_with_costs,
            investor_share_percentage=Decimal('40'),
            manager_share_percentage=Decimal('60'),
        )

        ps = result.profit_sharing
        assert ps.total_capital_investor == Decimal('152000000')
        assert ps.total_capital_manager == Decimal('5000000')
        assert ps.total_capital == Decimal('157000000')
        assert ps.net_margin == Decimal('23000000')
        assert ps.investor_profit_amount == Decimal('9200000')
        assert ps.manager_profit_amount == Decimal('13800000')

        trx = Transaction.objects.get(id=transaction_with_costs.id)
        assert trx.status == TransactionStatus.COMPLETED
        assert trx.profit_status == ProfitStatus.PROFIT
        assert trx.payment_status == PaymentStatus.UNPAID
        assert trx.sell_price == Decimal('180000000')

        unit.refresh_from_db()
        assert unit.status == UnitStatus.SOLD

    def test_loss_sale(self, transaction_with_costs):
        result = sell(
            transaction_with_costs,
            price='150000000',
            investor_share_percentage=Decimal('40'),
            manager_share_percentage=Decimal('60'),
            loss_bearer=LossBearer.SHARED,
        )

        assert result.profit_sharing.net_margin == Decimal('-7000000')
        assert result.profit_sharing.investor_profit_amount == Decimal('0')
        assert result.profit_sharing.manager_profit_amount == Decimal('0')
        assert result.transaction.profit_status == ProfitStatus.LOSS
        assert result.transaction.loss_bearer == LossBearer.SHARED

    def test_sale_keeps_stored_loss_bearer(self, transaction_with_costs):
        Transaction.objects.filter(id=transaction_with_costs.id).update(loss_bearer=LossBearer.SHARED)

        result = sell(transaction_with_costs, price='150000000')

        result.transaction.refresh_from_db()
        assert result.transaction.loss_bearer == LossBearer.SHARED

    def test_uses_investor_default_share(self, transaction_with_costs):
        """Investor fixture has a 40% margin percentage."""
        result = sell(transaction_with_costs)

        assert result.profit_sharing.investor_share_percentage == Decimal('40')
        assert result.profit_sharing.manager_share_percentage == Decimal('60')

    def test_single_share_gets_complement(self, transaction_with_costs):
        result = sell(transaction_with_costs, manager_share_percentage=Decimal('70'))

        assert result.profit_sharing.investor_share_percentage == Decimal('30')
        assert result.profit_sharing.investor_profit_amount == Decimal('6900000')

    def test_capital_overrides(self, transaction_with_costs):
        Transaction.objects.filter(id=transaction_with_costs.id).update(
            initial_investor_capital=Decimal('100000000'),
            initial_manager_capital=Decimal('50000000'),
        )

        result = sell(transaction_with_costs, investor_share_percentage=Decimal('50'))

        assert result.profit_sharing.total_capital_investor == Decimal('102000000')
        assert result.profit_sharing.total_capital_manager == Decimal('55000000')

    def test_already_completed_is_conflict_without_changes(self, transaction_with_costs):
        sell(transaction_with_costs, investor_share_percentage=Decimal('40'))
        before = ProfitSharing.objects.get(transaction=transaction_with_costs)

        with pytest.raises(TransactionAlreadyCompletedError):
            sell(transaction_with_costs, price='999000000', investor_share_percentage=Decimal('90'))

        after = ProfitSharing.objects.get(transaction=transaction_with_costs)
        assert after.investor_share_percentage == before.investor_share_percentage
        assert after.net_margin == before.net_margin
        trx = Transaction.objects.get(id=transaction_with_costs.id)
        assert trx.sell_price == Decimal('180000000')

    def test_missing_sell_date(self, on_process_transaction):
        with pytest.raises(MissingSaleDataError):
            finalize_transaction(
                transaction_id=on_process_transaction.id,
                sell_price=Decimal('180000000'),
            )

    def test_non_positive_sell_price(self, on_process_transaction):
        with pytest.raises(MissingSaleDataError):
            sell(on_process_transaction, price='0')

    def test_invalid_split_writes_nothing(self, on_process_transaction, unit):
        with pytest.raises(InvalidShareSplitError):
            sell(
                on_process_transaction,
                investor_share_percentage=Decimal('40'),
                manager_share_percentage=Decimal('50'),
            )

        trx = Transaction.objects.get(id=on_process_transaction.id)
        assert trx.status == TransactionStatus.ON_PROCESS
        assert trx.sell_price is None
        assert not ProfitSharing.objects.filter(transaction=trx).exists()
        unit.refresh_from_db()
        assert unit.status == UnitStatus.AVAILABLE

    def test_failure_inside_block_rolls_back(self, transaction_with_costs, unit):
        """An error after the snapshot is written undoes every write."""
        with patch(
            'apps.transactions.services.lifecycle.notify_unit_sold_on_commit',
            side_effect=RuntimeError('forced failure'),
        ):
            with pytest.raises(RuntimeError):
                sell(transaction_with_costs, investor_share_percentage=Decimal('40'))

        trx = Transaction.objects.get(id=transaction_with_costs.id)
        assert trx.status == TransactionStatus.ON_PROCESS
        assert trx.sell_price is None
        assert trx.profit_status is None
        assert not ProfitSharing.objects.filter(transaction=trx).exists()
        unit.refresh_from_db()
        assert unit.status == UnitStatus.AVAILABLE

    def test_existing_payments_reconciled(self, on_process_transaction, investor):
        PaymentHistory.objects.create(
            transaction=on_process_transaction,
            investor=investor,
            amount=Decimal('4000000'),
            payment_date=date(2024, 2, 1),
            method=PaymentMethod.TRANSFER,
        )

        result = sell(on_process_transaction, investor_share_percentage=Decimal('40'))

        # margin 30M, investor 12M, 4M already paid
        assert result.transaction.payment_status == PaymentStatus.PARTIAL

    def test_not_found(self):
        with pytest.raises(TransactionNotFoundError):
            finalize_transaction(
                transaction_id=uuid4(),
                sell_date=date(2024, 3, 1),
                sell_price=Decimal('1'),
            )

    def test_notifies_investor_after_commit(self, transaction_with_costs, django_capture_on_commit_callbacks):
        with patch('apps.notifications.services.notify_unit_sold') as mock_notify:
            mock_notify.__name__ = 'notify_unit_sold'
            with django_capture_on_commit_callbacks(execute=True):
                sell(transaction_with_costs)

        mock_notify.assert_called_once_with(
            transaction_with_costs.unit.investor_id,
            transaction_with_costs.id,
        )

    def test_notification_failure_does_not_propagate(self, transaction_with_costs, django_capture_on_commit_callbacks):
        with patch(
            'apps.notifications.services.notify_unit_sold',
            side_effect=RuntimeError('provider down'),
        ) as mock_notify:
            mock_notify.__name__ = 'notify_unit_sold'
            with django_capture_on_commit_callbacks(execute=True):
                result = sell(transaction_with_costs)

        assert result.transaction.status == TransactionStatus.COMPLETED


# =============================================================================
# Revert
# =============================================================================

@pytest.mark.django_db
class TestRevertTransaction:
    """Tests for revert_transaction()."""

    def test_revert_clears_profit_sharing(self, transaction_with_costs, unit):
        sell(transaction_with_costs)

        trx = revert_transaction(transaction_id=transaction_with_costs.id)

        assert trx.status == TransactionStatus.ON_PROCESS
        assert trx.profit_status is None
        assert not ProfitSharing.objects.filter(transaction=trx).exists()
        unit.refresh_from_db()
        assert unit.status == UnitStatus.AVAILABLE

    def test_revert_keeps_payments_and_costs(self, transaction_with_costs, investor):
        sell(transaction_with_costs)
        PaymentHistory.objects.create(
            transaction=transaction_with_costs,
            investor=investor,
            amount=Decimal('1000000'),
            payment_date=date(2024, 3, 5),
            method=PaymentMethod.CASH,
        )

        revert_transaction(transaction_id=transaction_with_costs.id)

        assert PaymentHistory.objects.filter(transaction=transaction_with_costs).count() == 1
        assert Cost.objects.filter(transaction=transaction_with_costs).count() == 3

    def test_revert_blocked_by_other_active_transaction(self, on_process_transaction, unit):
        sell(on_process_transaction)
        create_transaction(
            unit_id=unit.id,
            buy_date=date(2024, 4, 1),
            buy_price=Decimal('100000000'),
            transaction_code='TRX-2024-002',
        )

        with pytest.raises(ActiveTransactionExistsError):
            revert_transaction(transaction_id=on_process_transaction.id)

        trx = Transaction.objects.get(id=on_process_transaction.id)
        assert trx.status == TransactionStatus.COMPLETED
        assert ProfitSharing.objects.filter(transaction=trx).exists()

    def test_revert_in_process_is_noop(self, on_process_transaction):
        trx = revert_transaction(transaction_id=on_process_transaction.id)

        assert trx.status == TransactionStatus.ON_PROCESS

    def test_sell_again_after_revert(self, transaction_with_costs):
        sell(transaction_with_costs)
        revert_transaction(transaction_id=transaction_with_costs.id)

        result = sell(transaction_with_costs, price='200000000', investor_share_percentage=Decimal('50'))

        assert result.profit_sharing.net_margin == Decimal('43000000')
        assert ProfitSharing.objects.filter(transaction=transaction_with_costs).count() == 1


# =============================================================================
# Shares
# =============================================================================

@pytest.mark.django_db
class TestUpdateShares:
    """Tests for update_shares()."""

    def test_recomputes_from_stored_margin(self, transaction_with_costs):
        sell(transaction_with_costs, investor_share_percentage=Decimal('40'))

        ps = update_shares(
            transaction_id=transaction_with_costs.id,
            investor_share_percentage=Decimal('50'),
            manager_share_percentage=Decimal('50'),
        )

        assert ps.net_margin == Decimal('23000000')
        assert ps.investor_profit_amount == Decimal('11500000')
        assert ps.manager_profit_amount == Decimal('11500000')

    def test_reconciles_payment_status(self, transaction_with_costs, investor):
        sell(transaction_with_costs, investor_share_percentage=Decimal('50'))
        PaymentHistory.objects.create(
            transaction=transaction_with_costs,
            investor=investor,
            amount=Decimal('9200000'),
            payment_date=date(2024, 3, 5),
            method=PaymentMethod.TRANSFER,
        )

        update_shares(transaction_id=transaction_with_costs.id, investor_share_percentage=Decimal('40'))

        trx = Transaction.objects.get(id=transaction_with_costs.id)
        assert trx.payment_status == PaymentStatus.PAID

    def test_without_profit_sharing(self, on_process_transaction):
        with pytest.raises(ProfitSharingNotFoundError):
            update_shares(
                transaction_id=on_process_transaction.id,
                investor_share_percentage=Decimal('50'),
            )

    def test_invalid_sum(self, transaction_with_costs):
        sell(transaction_with_costs)

        with pytest.raises(InvalidShareSplitError):
            update_shares(
                transaction_id=transaction_with_costs.id,
                investor_share_percentage=Decimal('60'),
                manager_share_percentage=Decimal('60'),
            )


# =============================================================================
# Edit details / status
# =============================================================================

@pytest.mark.django_db
class TestUpdateTransaction:
    """Tests for update_transaction() and set_transaction_status()."""

    def test_edit_in_process_details(self, on_process_transaction):
        trx = update_transaction(
            transaction_id=on_process_transaction.id,
            buy_price=Decimal('155000000'),
            notes='Bought at auction',
        )

        assert trx.buy_price == Decimal('155000000')
        assert trx.notes == 'Bought at auction'
        assert not ProfitSharing.objects.filter(transaction=trx).exists()

    def test_repricing_completed_rebuilds_snapshot(self, transaction_with_costs):
        sell(transaction_with_costs, investor_share_percentage=Decimal('40'))

        update_transaction(
            transaction_id=transaction_with_costs.id,
            sell_price=Decimal('190000000'),
        )

        ps = ProfitSharing.objects.get(transaction=transaction_with_costs)
        assert ps.net_margin == Decimal('33000000')
        assert ps.investor_share_percentage == Decimal('40')
        assert ps.investor_profit_amount == Decimal('13200000')

    def test_repricing_into_loss_updates_profit_status(self, transaction_with_costs):
        sell(transaction_with_costs)

        trx = update_transaction(
            transaction_id=transaction_with_costs.id,
            buy_price=Decimal('200000000'),
        )

        assert trx.profit_status == ProfitStatus.LOSS
        assert ProfitSharing.objects.get(transaction=trx).investor_profit_amount == Decimal('0')

    def test_clearing_sell_price_of_completed_rejected(self, transaction_with_costs):
        sell(transaction_with_costs)

        with pytest.raises(MissingSaleDataError):
            update_transaction(transaction_id=transaction_with_costs.id, sell_price=None)

    def test_clear_capital_override(self, on_process_transaction):
        update_transaction(
            transaction_id=on_process_transaction.id,
            initial_investor_capital=Decimal('1000'),
        )

        trx = update_transaction(
            transaction_id=on_process_transaction.id,
            initial_investor_capital=None,
        )

        assert trx.initial_investor_capital is None

    def test_duplicate_code(self, on_process_transaction, second_unit):
        other = create_transaction(
            unit_id=second_unit.id,
            buy_date=date(2024, 1, 12),
            buy_price=Decimal('90000000'),
            transaction_code='TRX-2024-002',
        )

        with pytest.raises(DuplicateTransactionCodeError):
            update_transaction(
                transaction_id=other.id,
                transaction_code=on_process_transaction.transaction_code,
            )

    def test_status_completed_uses_stored_sale_data(self, transaction_with_costs):
        update_transaction(
            transaction_id=transaction_with_costs.id,
            sell_date=date(2024, 3, 1),
            sell_price=Decimal('180000000'),
        )

        trx = set_transaction_status(
            transaction_id=transaction_with_costs.id,
            status=TransactionStatus.COMPLETED,
        )

        assert trx.status == TransactionStatus.COMPLETED
        assert ProfitSharing.objects.get(transaction=trx).net_margin == Decimal('23000000')

    def test_status_completed_without_sale_data(self, on_process_transaction):
        with pytest.raises(MissingSaleDataError):
            set_transaction_status(
                transaction_id=on_process_transaction.id,
                status=TransactionStatus.COMPLETED,
            )

    def test_status_on_process_reverts(self, transaction_with_costs):
        sell(transaction_with_costs)

        trx = set_transaction_status(
            transaction_id=transaction_with_costs.id,
            status=TransactionStatus.ON_PROCESS,
        )

        assert trx.status == TransactionStatus.ON_PROCESS
        assert not ProfitSharing.objects.filter(transaction=trx).exists()

    def test_status_completed_again_applies_new_shares(self, transaction_with_costs):
        sell(transaction_with_costs, investor_share_percentage=Decimal('40'))

        set_transaction_status(
            transaction_id=transaction_with_costs.id,
            status=TransactionStatus.COMPLETED,
            investor_share_percentage=Decimal('30'),
            manager_share_percentage=Decimal('70'),
        )

        sharing = ProfitSharing.objects.get(transaction=transaction_with_costs)
        assert sharing.investor_share_percentage == Decimal('30')
        assert sharing.investor_profit_amount == Decimal('6900000.00')
        assert sharing.manager_profit_amount == Decimal('16100000.00')

    def test_status_completed_again_without_shares_is_noop(self, transaction_with_costs):
        sell(transaction_with_costs, investor_share_percentage=Decimal('40'))

        trx = set_transaction_status(
            transaction_id=transaction_with_costs.id,
            status=TransactionStatus.COMPLETED,
        )

        assert trx.status == TransactionStatus.COMPLETED
        sharing = ProfitSharing.objects.get(transaction=trx)
        assert sharing.investor_profit_amount == Decimal('9200000.00')

    def test_unknown_status(self, on_process_transaction):
        with pytest.raises(EngineValidationError):
            set_transaction_status(transaction_id=on_process_transaction.id, status='archived')


# =============================================================================
# Delete
# =============================================================================

@pytest.mark.django_db
class TestDeleteTransaction:
    """Tests for delete_transaction() and get_transaction_by_id()."""

    def test_delete_cascades_and_frees_unit(self, transaction_with_costs, unit, investor):
        sell(transaction_with_costs)
        PaymentHistory.objects.create(
            transaction=transaction_with_costs,
            investor=investor,
            amount=Decimal('1000000'),
            payment_date=date(2024, 3, 5),
            method=PaymentMethod.TRANSFER,
        )

        delete_transaction(transaction_id=transaction_with_costs.id)

        assert not Transaction.objects.filter(id=transaction_with_costs.id).exists()
        assert not Cost.objects.filter(transaction_id=transaction_with_costs.id).exists()
        assert not ProfitSharing.objects.filter(transaction_id=transaction_with_costs.id).exists()
        assert not PaymentHistory.objects.filter(transaction_id=transaction_with_costs.id).exists()
        unit.refresh_from_db()
        assert unit.status == UnitStatus.AVAILABLE

    def test_delete_not_found(self):
        with pytest.raises(TransactionNotFoundError):
            delete_transaction(transaction_id=uuid4())

    def test_get_by_id(self, on_process_transaction):
        trx = get_transaction_by_id(on_process_transaction.id)

        assert trx.transaction_code == 'TRX-2024-001'

    def test_get_by_id_not_found(self):
        with pytest.raises(TransactionNotFoundError):
            get_transaction_by_id(uuid4())
