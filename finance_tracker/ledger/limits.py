"""
Category Limit Checks

Shared by the ledger engine (which enforces its configured policy) and
by the caller-side validator (which warns before the engine is called).
"""

from decimal import Decimal
from typing import Iterable

from finance_tracker.models.transaction import (
    LedgerState,
    LimitCheck,
    LimitPolicy,
    Transaction,
)


def spent_in_category(transactions: Iterable[Transaction], category: str) -> Decimal:
    """Sum of expense amounts recorded in a category. Income never counts."""
    return sum(
        (tx.amount for tx in transactions if tx.category == category and not tx.is_income),
        Decimal("0"),
    )


def check_category_limit(
    state: LedgerState,
    category: str,
    amount: Decimal,
    policy: LimitPolicy = LimitPolicy.SINGLE_AMOUNT,
) -> LimitCheck:
    """
    Compare an amount against the category's limit under one policy.

    A category without a limit entry is unlimited and never exceeded.
    Reaching the limit exactly is allowed; only going past it is not.
    """
    limit = state.limit_for(category)
    spent = spent_in_category(state.expenses, category)

    if policy == LimitPolicy.CUMULATIVE:
        projected = spent + amount
    else:
        projected = amount

    return LimitCheck(
        category=category,
        policy=policy,
        amount=amount,
        limit=limit,
        spent=spent,
        projected=projected,
        exceeded=limit is not None and projected > limit,
    )
