"""
Input Validation (caller-side pre-check)

DESIGN DECISION: Validation happens BEFORE the ledger engine is called,
in two stages:

STAGE 1 - INPUT VALIDATION:
- Name present and not just whitespace
- Amount parses as a finite number and is positive
- Limit parses as a finite number and is not negative
A failure here is an error: nothing reaches the engine.

STAGE 2 - BUDGET CHECK (optional, needs the current ledger state):
- Would the expense push its category past the limit, counting what
  was already spent there?
A failure here is only a WARNING. The user is asked to confirm.

IMPORTANT: The engine enforces its own limit policy on every call and
has no override flag. A confirmed over-budget expense that the engine
still rejects can only go through after the limit is raised.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from finance_tracker.ledger.limits import check_category_limit
from finance_tracker.models.transaction import (
    INCOME_CATEGORY,
    LedgerState,
    LimitCheck,
    LimitPolicy,
    Transaction,
)
from finance_tracker.models.validation import InputValidationResult, ValidationIssue


AmountInput = Union[str, int, float, Decimal, None]


def parse_amount(raw: AmountInput) -> Optional[Decimal]:
    """
    Parse user input into a Decimal.

    Returns None for anything that is not a finite number.
    A decimal comma is accepted. Floats go through str() so 0.1 stays 0.1.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        raw = str(raw)
    if isinstance(raw, str):
        raw = raw.strip().replace(",", ".")
        if not raw:
            return None
    try:
        value = Decimal(raw)
    except (InvalidOperation, ValueError, TypeError):
        return None
    return value if value.is_finite() else None


class TransactionInputValidator:
    """
    Validates raw user input for the ledger's add paths.

    Stage 1 runs always. Stage 2 runs only when a ledger state is given.
    """

    def _validate_name(self, name: Optional[str]) -> list[ValidationIssue]:
        if name is None or not name.strip():
            return [ValidationIssue(
                field="name",
                issue_type="missing",
                message="Please enter a name for this entry",
                severity="error",
            )]
        return []

    def _validate_amount(
        self,
        raw: AmountInput,
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        amount = parse_amount(raw)
        if amount is None:
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message="Please enter a valid amount",
                severity="error",
            )]
        if amount <= 0:
            return None, [ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            )]
        return amount, []

    def _validate_budget(
        self,
        state: LedgerState,
        category: str,
        amount: Decimal,
    ) -> tuple[LimitCheck, list[ValidationIssue]]:
        check = check_category_limit(state, category, amount, LimitPolicy.CUMULATIVE)
        if not check.exceeded:
            return check, []
        return check, [ValidationIssue(
            field="amount",
            issue_type="limit_exceeded",
            message=(
                f"This goes over the budget for {category}: "
                f"{check.projected} of {check.limit}. Add it anyway?"
            ),
            severity="warning",
        )]

    def validate_expense(
        self,
        name: Optional[str],
        amount: AmountInput,
        category: str,
        date: Union[datetime, str],
        state: Optional[LedgerState] = None,
    ) -> InputValidationResult:
        """
        Validate an expense form.

        Args:
            name: Free-text label
            amount: Raw amount as typed
            category: Expense category
            date: When it happened
            state: Current ledger snapshot, enables the budget warning

        Returns:
            Result carrying the built Transaction when there are no errors
        """
        issues = self._validate_name(name)
        parsed, amount_issues = self._validate_amount(amount)
        issues.extend(amount_issues)

        if issues:
            return InputValidationResult(issues=issues)

        limit_check = None
        if state is not None:
            limit_check, budget_issues = self._validate_budget(state, category, parsed)
            issues.extend(budget_issues)

        return InputValidationResult(
            issues=issues,
            transaction=Transaction(
                name=name.strip(),
                amount=parsed,
                category=category,
                date=date,
            ),
            limit_check=limit_check,
        )

    def validate_income(
        self,
        amount: AmountInput,
        date: Union[datetime, str],
        name: str = INCOME_CATEGORY,
    ) -> InputValidationResult:
        """Validate an income form. Income is never budget checked."""
        issues = self._validate_name(name)
        parsed, amount_issues = self._validate_amount(amount)
        issues.extend(amount_issues)

        if issues:
            return InputValidationResult(issues=issues)

        return InputValidationResult(
            transaction=Transaction(
                name=name.strip(),
                amount=parsed,
                category=INCOME_CATEGORY,
                date=date,
            ),
        )

    def validate_limit(self, raw: AmountInput) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        """Parse a new category limit. Zero is allowed, negatives are not."""
        limit = parse_amount(raw)
        if limit is None or limit < 0:
            return None, [ValidationIssue(
                field="limit",
                issue_type="invalid_value",
                message="Please enter a valid limit",
                severity="error",
            )]
        return limit, []

    def get_user_friendly_summary(self, result: InputValidationResult) -> str:
        """
        Generate a short message for the user.
        """
        if result.has_errors:
            lines = ["Please fix the following:"]
            lines.extend(
                f"• {issue.message}" for issue in result.issues if issue.severity == "error"
            )
            return "\n".join(lines)

        if result.warnings:
            return "\n".join(issue.message for issue in result.warnings)

        return "Looks good."
