"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every storage failure is logged.
This provides:
1. Traceability of how the running totals were reached
2. Debugging capability when persistence misbehaves
3. A short in-memory history the UI can show

The audit logger:
- Is synchronous, because ledger mutators are synchronous
- Never raises into the ledger (logging must not break a commit)
- Keeps the most recent events in a bounded deque
"""

import logging
from collections import deque
from decimal import Decimal
from typing import Optional

import structlog

from finance_tracker.models.audit import AuditSeverity, LedgerEvent, LedgerEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_log_level(level: str = "INFO") -> None:
    """Route stdlib logging (and therefore structlog) at the given level."""
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger("finance_tracker").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service for the ledger.

    Logs events to the structured local log and remembers the last
    `history_size` of them.
    """

    def __init__(self, history_size: int = 200):
        self._history: deque[LedgerEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("finance_tracker.audit")

    def log(self, event: LedgerEvent) -> None:
        """Log an audit event locally and keep it in the history."""
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("ledger_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("ledger_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("ledger_event", **log_dict)
            else:
                self._logger.info("ledger_event", **log_dict)
        except Exception:
            # Log failure but don't raise; the event is still in the history
            logging.getLogger("finance_tracker.audit").exception(
                "audit log write failed for event %s", event.event_id
            )

    def recent_events(self, limit: int = 50) -> list[LedgerEvent]:
        """Most recent events, newest first."""
        events = list(self._history)
        events.reverse()
        return events[:limit]

    def log_transaction_added(self, transaction_id: str, category: str, amount: Decimal) -> None:
        self.log(LedgerEventBuilder.transaction_added(transaction_id, category, amount))

    def log_transaction_rejected(
        self,
        transaction_id: str,
        category: str,
        amount: Decimal,
        limit: Optional[Decimal],
        policy: str,
    ) -> None:
        """Log a transaction refused because of its category limit."""
        self.log(
            LedgerEventBuilder.transaction_rejected(
                transaction_id, category, amount, limit, policy
            )
        )

    def log_income_added(self, transaction_id: str, amount: Decimal) -> None:
        self.log(LedgerEventBuilder.income_added(transaction_id, amount))

    def log_transaction_removed(
        self,
        transaction_id: str,
        category: str,
        amount: Decimal,
        position: int,
    ) -> None:
        self.log(
            LedgerEventBuilder.transaction_removed(transaction_id, category, amount, position)
        )

    def log_category_limit_updated(self, category: str, limit: Decimal, created: bool) -> None:
        self.log(LedgerEventBuilder.category_limit_updated(category, limit, created))

    def log_ledger_loaded(self, transaction_count: int, balance: Decimal) -> None:
        self.log(LedgerEventBuilder.ledger_loaded(transaction_count, balance))

    def log_ledger_cleared(self) -> None:
        self.log(LedgerEventBuilder.ledger_cleared())

    def log_storage_failed(self, operation: str, error_message: str) -> None:
        """Log a storage failure. The ledger keeps going on in-memory state."""
        self.log(LedgerEventBuilder.storage_failed(operation, error_message))

    def log_stored_data_invalid(self, key: str, error_message: str) -> None:
        self.log(LedgerEventBuilder.stored_data_invalid(key, error_message))
