"""Ledger engine package."""

from finance_tracker.ledger.engine import LedgerEngine, LedgerListener
from finance_tracker.ledger.limits import check_category_limit, spent_in_category

__all__ = [
    "LedgerEngine",
    "LedgerListener",
    "check_category_limit",
    "spent_in_category",
]
