"""
Domain-specific exceptions for the profit engine.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses:
validation errors to 400, conflicts to 409, missing records to 404.
"""


class ProfitEngineError(Exception):
    """Base exception for all profit engine errors."""
    pass


# =============================================================================
# Validation (malformed or missing input)
# =============================================================================

class EngineValidationError(ProfitEngineError):
    """Raised when input is malformed or a required value is missing."""
    pass


class MissingSaleDataError(EngineValidationError):
    """Raised when finalizing without a sell date and a positive sell price."""
    pass


class InvalidShareSplitError(EngineValidationError):
    """Raised when share percentages are out of range or don't sum to 100."""
    pass


# =============================================================================
# Conflicts (input is valid but the current state forbids the change)
# =============================================================================

class EngineConflictError(ProfitEngineError):
    """Raised when the current state of a record forbids the operation."""
    pass


class ActiveTransactionExistsError(EngineConflictError):
    """Raised when a unit already has an ON_PROCESS transaction."""
    pass


class TransactionAlreadyCompletedError(EngineConflictError):
    """Raised when finalizing a transaction that is already COMPLETED."""
    pass


class TransactionLockedError(EngineConflictError):
    """Raised when changing costs of a COMPLETED transaction."""
    pass


class DuplicateTransactionCodeError(EngineConflictError):
    """Raised when a transaction code is already taken."""
    pass


# =============================================================================
# Not found
# =============================================================================

class EngineNotFoundError(ProfitEngineError):
    """Raised when a referenced record does not exist."""
    pass


class TransactionNotFoundError(EngineNotFoundError):
    """Raised when a transaction does not exist."""
    pass


class UnitNotFoundError(EngineNotFoundError):
    """Raised when a unit does not exist."""
    pass


class CostNotFoundError(EngineNotFoundError):
    """Raised when a cost does not exist on the given transaction."""
    pass


class ProfitSharingNotFoundError(EngineNotFoundError):
    """Raised when a transaction has no profit sharing record yet."""
    pass
