"""Per-category budget usage, as shown on a budget overview."""

from typing import Iterable, Optional

from finance_tracker.ledger.limits import spent_in_category
from finance_tracker.models.transaction import CategorySpending, LedgerState


def summarize_category_spending(
    state: LedgerState,
    categories: Optional[Iterable[str]] = None,
) -> list[CategorySpending]:
    """
    Spent vs. limit for each category.

    Defaults to every category that has a limit, in limit order.
    A requested category without a limit reports a limit of 0, which
    never counts as over budget.
    """
    limits = state.limits_by_name()
    names = list(categories) if categories is not None else list(limits)

    return [
        CategorySpending(
            category=name,
            limit=limits.get(name, 0),
            spent=spent_in_category(state.expenses, name),
        )
        for name in names
    ]
