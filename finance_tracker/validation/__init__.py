"""Input validation package."""

from finance_tracker.validation.validator import TransactionInputValidator, parse_amount

__all__ = ["TransactionInputValidator", "parse_amount"]
