"""
Transactions app services layer.

Pure profit calculations plus the operations that move a transaction
through its lifecycle, manage its costs and record payouts. All
state-changing operations run atomically with row locks.
"""

from .exceptions import (
    ProfitEngineError,
    EngineValidationError,
    MissingSaleDataError,
    InvalidShareSplitError,
    EngineConflictError,
    ActiveTransactionExistsError,
    TransactionAlreadyCompletedError,
    TransactionLockedError,
    DuplicateTransactionCodeError,
    EngineNotFoundError,
    TransactionNotFoundError,
    UnitNotFoundError,
    CostNotFoundError,
    ProfitSharingNotFoundError,
)

from .calculations import (
    CostTotals,
    CapitalBreakdown,
    MarginSplit,
    ShareSplit,
    aggregate_costs,
    resolve_capital,
    classify_margin,
    split_profit,
    resolve_share_split,
    calculate_margin_and_split,
    reconcile_payment,
)

from .codes import next_transaction_code

from .lifecycle import (
    UNCHANGED,
    FinalizeResult,
    get_transaction_by_id,
    create_transaction,
    finalize_transaction,
    revert_transaction,
    update_shares,
    update_transaction,
    set_transaction_status,
    delete_transaction,
)

from .payments import (
    PaymentResult,
    PaymentSummary,
    record_payment,
    get_payment_summary,
)

from .costs import (
    add_cost,
    update_cost,
    delete_cost,
)


__all__ = [
    # Exceptions
    'ProfitEngineError',
    'EngineValidationError',
    'MissingSaleDataError',
    'InvalidShareSplitError',
    'EngineConflictError',
    'ActiveTransactionExistsError',
    'TransactionAlreadyCompletedError',
    'TransactionLockedError',
    'DuplicateTransactionCodeError',
    'EngineNotFoundError',
    'TransactionNotFoundError',
    'UnitNotFoundError',
    'CostNotFoundError',
    'ProfitSharingNotFoundError',

    # Calculations
    'CostTotals',
    'CapitalBreakdown',
    'MarginSplit',
    'ShareSplit',
    'aggregate_costs',
    'resolve_capital',
    'classify_margin',
    'split_profit',
    'resolve_share_split',
    'calculate_margin_and_split',
    'reconcile_payment',

    # Codes
    'next_transaction_code',

    # Lifecycle
    'UNCHANGED',
    'FinalizeResult',
    'get_transaction_by_id',
    'create_transaction',
    'finalize_transaction',
    'revert_transaction',
    'update_shares',
    'update_transaction',
    'set_transaction_status',
    'delete_transaction',

    # Payments
    'PaymentResult',
    'PaymentSummary',
    'record_payment',
    'get_payment_summary',

    # Costs
    'add_cost',
    'update_cost',
    'delete_cost',
]
