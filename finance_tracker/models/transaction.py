"""
Core Ledger Models for the Finance Tracker

These models define the strict schemas for everything the ledger owns:
transactions, category limits and the ledger state snapshot.

DESIGN DECISION: Amounts are Decimal, never float.
Running totals are maintained incrementally, so binary floating point
would slowly drift away from `income - expense`.

DESIGN DECISION: Transactions and ledger snapshots are frozen.
The engine never mutates a transaction in place; every commit builds
a new LedgerState and replaces the old one wholesale.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


# The one reserved category. Everything else is an expense category.
INCOME_CATEGORY = "Income"

DEFAULT_CATEGORY_LIMITS: tuple[tuple[str, Decimal], ...] = (
    ("Konaklama", Decimal("500")),
    ("Dışarıda Yemek", Decimal("300")),
    ("Alışveriş", Decimal("400")),
    ("Eğlence", Decimal("200")),
    ("Ulaşım", Decimal("250")),
    ("Hediye", Decimal("100")),
    ("Spor", Decimal("150")),
    ("Tatil", Decimal("1000")),
    ("Diğer", Decimal("200")),
)


def new_transaction_id() -> str:
    """Generate an opaque transaction identifier."""
    return uuid4().hex


# =============================================================================
# ENUMS
# =============================================================================

class Granularity(str, Enum):
    """Reporting period size used by the period aggregator."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class LimitPolicy(str, Enum):
    """
    How a category limit is compared against a new expense.

    SINGLE_AMOUNT: the new amount alone must not exceed the limit.
    CUMULATIVE: what was already spent in the category plus the new
    amount must not exceed the limit.
    """
    SINGLE_AMOUNT = "single_amount"
    CUMULATIVE = "cumulative"


# =============================================================================
# TRANSACTIONS & LIMITS
# =============================================================================

class Transaction(BaseModel):
    """
    A single recorded money movement.

    The sign is never stored: `category == "Income"` makes it income,
    any other category makes it an expense.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_transaction_id,
        description="Opaque unique identifier"
    )
    name: str = Field(
        ...,
        description="Free-text label"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive magnitude, currency agnostic"
    )
    category: str = Field(
        ...,
        description="Category tag; 'Income' is reserved for income entries"
    )
    date: datetime = Field(
        ...,
        description="When the movement happened (caller supplied, may be back/post dated)"
    )

    @property
    def is_income(self) -> bool:
        return self.category == INCOME_CATEGORY

    @property
    def signed_amount(self) -> Decimal:
        """+amount for income, -amount for expenses."""
        return self.amount if self.is_income else -self.amount


class CategoryLimit(BaseModel):
    """Spending cap for one expense category."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        description="Category name (unique key)"
    )
    limit: Decimal = Field(
        ...,
        ge=0,
        description="Maximum allowed spend"
    )


def default_category_limits() -> tuple[CategoryLimit, ...]:
    """The canonical limit set a fresh ledger starts with."""
    return tuple(
        CategoryLimit(name=name, limit=limit)
        for name, limit in DEFAULT_CATEGORY_LIMITS
    )


# =============================================================================
# LEDGER STATE
# =============================================================================

class LedgerState(BaseModel):
    """
    Immutable snapshot of the whole ledger.

    INVARIANT: balance == income - expense.
    `expenses` holds income AND expense entries; its order matters
    because positional removal indexes into it.
    """
    model_config = ConfigDict(frozen=True)

    balance: Decimal = Decimal("0")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    expenses: tuple[Transaction, ...] = ()
    category_limits: tuple[CategoryLimit, ...] = Field(
        default_factory=default_category_limits
    )

    @classmethod
    def default(cls) -> "LedgerState":
        return cls()

    def limits_by_name(self) -> dict[str, Decimal]:
        return {item.name: item.limit for item in self.category_limits}

    def limit_for(self, category: str) -> Optional[Decimal]:
        """Limit for a category, or None when the category is unlimited."""
        for item in self.category_limits:
            if item.name == category:
                return item.limit
        return None


# =============================================================================
# DERIVED / REPORTING MODELS
# =============================================================================

class LimitCheck(BaseModel):
    """Outcome of comparing an amount against a category limit."""

    category: str
    policy: LimitPolicy
    amount: Decimal
    limit: Optional[Decimal] = Field(
        default=None,
        description="None means the category is unlimited"
    )
    spent: Decimal = Field(
        default=Decimal("0"),
        description="Already spent in the category before this amount"
    )
    projected: Decimal = Field(
        ...,
        description="The value that was compared against the limit"
    )
    exceeded: bool


class PeriodBucket(BaseModel):
    """
    Transactions that fall into one reporting period.

    `total` is the signed net of the period: income adds, expenses subtract.
    """

    key: str = Field(
        ...,
        description="Period key: YYYY-MM-DD for days and weeks, YYYY-MM for months"
    )
    granularity: Granularity
    start: date = Field(
        ...,
        description="First day of the period"
    )
    end: date = Field(
        ...,
        description="Last day of the period (inclusive)"
    )
    total: Decimal = Decimal("0")
    items: list[Transaction] = Field(default_factory=list)

    @property
    def label(self) -> str:
        """Display label; weeks show their full day range."""
        if self.granularity == Granularity.WEEKLY:
            return f"{self.start.isoformat()} - {self.end.isoformat()}"
        return self.key

    @property
    def income(self) -> Decimal:
        return sum((tx.amount for tx in self.items if tx.is_income), Decimal("0"))

    @property
    def expense(self) -> Decimal:
        return sum((tx.amount for tx in self.items if not tx.is_income), Decimal("0"))

    @property
    def count(self) -> int:
        return len(self.items)


class CategorySpending(BaseModel):
    """How much of a category's limit has been used."""

    category: str
    limit: Decimal
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        """Left to spend; negative once the category is over budget."""
        return self.limit - self.spent

    @property
    def progress_percent(self) -> Decimal:
        """Share of the limit used, capped at 100."""
        if self.limit <= 0:
            return Decimal("0")
        return min(self.spent / self.limit * 100, Decimal("100"))

    @property
    def is_over_budget(self) -> bool:
        return self.limit > 0 and self.spent > self.limit
