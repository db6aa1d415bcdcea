"""
Derived status models.

These are never persisted. The engine builds them from a snapshot on every
read, so they always agree with the payment and entry history they came
from.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from local_ledger.models.ledger import ChitFundEntry, FinancialReminder


class TimelineStatus(str, Enum):
    """Where a scheduled month sits relative to today."""
    PAST = "past"
    CURRENT = "current"
    FUTURE = "future"


class ReminderState(str, Enum):
    """Read-time classification of a reminder."""
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    UPCOMING = "upcoming"
    COMPLETED = "completed"


# =============================================================================
# LOANS
# =============================================================================

class LoanTimelineMonth(BaseModel):
    """One installment month of a loan."""

    month_index: int = Field(..., ge=0, description="0-based offset from the start month")
    month_key: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    date: dt.date = Field(..., description="Due date, day clamped to month end")
    label: str = Field(..., description="Short display label, e.g. 'Jan 2024'")
    is_paid: bool
    status: TimelineStatus


class LoanStatus(BaseModel):
    """
    Point-in-time status of a loan.

    Invariants: 0 <= progress <= 100 and
    remaining_balance + total_paid == total_payable whenever
    total_paid <= total_payable.
    """

    paid_months: int = Field(..., ge=0)
    total_paid: Decimal
    total_payable: Decimal
    remaining_balance: Decimal
    remaining_emis: int
    progress: float = Field(..., ge=0, le=100)
    is_past_tenure: bool
    is_completed: bool
    is_current_month_paid: bool
    timeline: list[LoanTimelineMonth] = Field(default_factory=list)


# =============================================================================
# CHIT FUNDS
# =============================================================================

class ChitScheduleSlot(BaseModel):
    """One draw month of a chit fund with the entry recorded for it, if any."""

    month_number: int = Field(..., ge=1, description="1-based month in the fund")
    month_key: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    date: dt.date
    label: str
    status: TimelineStatus
    entry: Optional[ChitFundEntry] = None

    @property
    def is_actionable(self) -> bool:
        """Entries may only be recorded for past or current months."""
        return self.status != TimelineStatus.FUTURE


class ChitSummary(BaseModel):
    total_paid: Decimal
    total_received: Decimal
    net_position: Decimal = Field(..., description="total_received - total_paid")
    months_recorded: int = Field(..., ge=0)
    is_taken: bool = Field(..., description="Has the user already won a draw?")
    schedule: list[ChitScheduleSlot] = Field(default_factory=list)


# =============================================================================
# INFORMAL DEBTS
# =============================================================================

class DebtStatus(BaseModel):
    total_paid: Decimal
    remaining_balance: Decimal
    progress: float = Field(..., ge=0, le=100)
    is_completed: bool


# =============================================================================
# REMINDERS & DASHBOARD
# =============================================================================

class ReminderGroups(BaseModel):
    """Reminders bucketed for display. Pending buckets are sorted by due date."""

    overdue: list[FinancialReminder] = Field(default_factory=list)
    due_today: list[FinancialReminder] = Field(default_factory=list)
    upcoming: list[FinancialReminder] = Field(default_factory=list)
    completed: list[FinancialReminder] = Field(default_factory=list)

    @property
    def urgent_count(self) -> int:
        return len(self.overdue) + len(self.due_today)


class MonthlyTotals(BaseModel):
    """Dashboard figures for one calendar month."""

    month_key: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: Decimal
    expenses: Decimal
    monthly_emis: Decimal = Field(
        ...,
        description="Sum of installments of loans still running in this month"
    )
    remaining_balance: Decimal = Field(
        ...,
        description="max(0, income - expenses)"
    )
    debt_outstanding: Decimal
    total_saved: Decimal = Field(
        ...,
        description="Chit contributions plus other-saving deposits, all time"
    )


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'required', 'out_of_range', 'overpayment')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one operation's input.

    Only error-level issues block the mutation; warnings are informational.
    """

    operation: str = Field(
        ...,
        description="Service operation being validated"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors
