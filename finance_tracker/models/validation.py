"""
Validation Result Models

Produced by the caller-side input validator before anything reaches
the ledger engine. The engine itself never re-validates names or
amount shapes.
"""

from typing import Optional

from pydantic import BaseModel, Field

from finance_tracker.models.transaction import LimitCheck, Transaction


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_a_number', 'limit_exceeded')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class InputValidationResult(BaseModel):
    """
    Result of validating raw user input.

    Errors block the operation. Warnings (such as a category going over
    its budget) are shown to the user, who decides whether to go ahead.
    """

    issues: list[ValidationIssue] = Field(default_factory=list)
    transaction: Optional[Transaction] = Field(
        default=None,
        description="The transaction built from the input, when there are no errors"
    )
    limit_check: Optional[LimitCheck] = None

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    @property
    def needs_confirmation(self) -> bool:
        """Valid, but the user should confirm a warning first."""
        return self.is_valid and bool(self.warnings)
