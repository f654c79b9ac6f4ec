"""
Audit Models for the Finance Tracker

Every committed ledger mutation, every rejected transaction and every
storage failure produces a LedgerEvent. This gives:
1. A trace of how the running totals got to their current value
2. Debugging information when persistence fails
3. A record of limit rejections the presentation layer warned about

DESIGN DECISION: Events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEventType(str, Enum):
    """Types of events we audit."""
    # Mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REJECTED = "transaction_rejected"
    INCOME_ADDED = "income_added"
    TRANSACTION_REMOVED = "transaction_removed"
    CATEGORY_LIMIT_UPDATED = "category_limit_updated"

    # Lifecycle
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_CLEARED = "ledger_cleared"

    # Persistence
    STORAGE_FAILED = "storage_failed"
    STORED_DATA_INVALID = "stored_data_invalid"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """
    A single audit event.

    Amounts travel in `details` as strings so Decimal precision survives
    the JSON log renderer.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: LedgerEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What the event is about, usually a transaction id or a category name
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.transaction_added(tx_id, category, amount)
        event = LedgerEventBuilder.storage_failed("persist", str(error))
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        category: str,
        amount: Decimal,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction added to {category}",
            details={"category": category, "amount": str(amount)},
        )

    @staticmethod
    def transaction_rejected(
        transaction_id: str,
        category: str,
        amount: Decimal,
        limit: Optional[Decimal],
        policy: str,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction rejected: {category} limit exceeded",
            details={
                "category": category,
                "amount": str(amount),
                "limit": str(limit) if limit is not None else None,
                "policy": policy,
            },
        )

    @staticmethod
    def income_added(transaction_id: str, amount: Decimal) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.INCOME_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Income recorded",
            details={"amount": str(amount)},
        )

    @staticmethod
    def transaction_removed(
        transaction_id: str,
        category: str,
        amount: Decimal,
        position: int,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_REMOVED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction removed from {category}",
            details={
                "category": category,
                "amount": str(amount),
                "position": position,
            },
        )

    @staticmethod
    def category_limit_updated(category: str, limit: Decimal, created: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CATEGORY_LIMIT_UPDATED,
            entity_type="category",
            entity_id=category,
            description=f"Limit for {category} set to {limit}",
            details={"limit": str(limit), "created": created},
        )

    @staticmethod
    def ledger_loaded(transaction_count: int, balance: Decimal) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_LOADED,
            entity_type="ledger",
            description=f"Ledger loaded with {transaction_count} transactions",
            details={"transaction_count": transaction_count, "balance": str(balance)},
        )

    @staticmethod
    def ledger_cleared() -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_CLEARED,
            entity_type="ledger",
            description="Ledger reset to defaults and storage erased",
        )

    @staticmethod
    def storage_failed(operation: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORAGE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            description=f"Storage {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def stored_data_invalid(key: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.STORED_DATA_INVALID,
            severity=AuditSeverity.WARNING,
            entity_type="storage",
            entity_id=key,
            description=f"Stored value for '{key}' is invalid, using default",
            error_message=error_message,
        )
