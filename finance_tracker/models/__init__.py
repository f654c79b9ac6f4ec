"""
Data Models Package

This package contains all Pydantic models used by the finance tracker.
All data flowing through the ledger must conform to these schemas.
"""

from finance_tracker.models.transaction import (
    DEFAULT_CATEGORY_LIMITS,
    INCOME_CATEGORY,
    CategoryLimit,
    CategorySpending,
    Granularity,
    LedgerState,
    LimitCheck,
    LimitPolicy,
    PeriodBucket,
    Transaction,
    default_category_limits,
    new_transaction_id,
)
from finance_tracker.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)
from finance_tracker.models.validation import (
    InputValidationResult,
    ValidationIssue,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORY_LIMITS",
    "INCOME_CATEGORY",
    "CategoryLimit",
    "CategorySpending",
    "Granularity",
    "LedgerState",
    "LimitCheck",
    "LimitPolicy",
    "PeriodBucket",
    "Transaction",
    "default_category_limits",
    "new_transaction_id",
    # Audit models
    "AuditSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
    # Validation models
    "InputValidationResult",
    "ValidationIssue",
]
