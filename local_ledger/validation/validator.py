"""
Two-Stage Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Type checking and required fields
- Enforced by the pydantic models themselves
- Failures are converted into ValidationIssues by `issues_from_pydantic`

STAGE 2 - BUSINESS RULES:
- Amounts strictly positive, at most two decimal places
- Names at least two characters
- Payment dates not in the future, reminder dates not in the past
- Overpayment guards (debt total, chit value)
- Schedule membership (loan months, chit months)

IMPORTANT: Validation NEVER silently fixes issues. It reports them and the
service refuses the mutation, leaving the store untouched.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from local_ledger.dates import month_key
from local_ledger.engine.debts import check_overpayment
from local_ledger.engine.loans import schedule_dates
from local_ledger.models.ledger import (
    BorrowedMoney,
    ChitFund,
    Expense,
    FinancialReminder,
    Income,
    Loan,
    OtherSaving,
    UserProfile,
    UserSettings,
)
from local_ledger.models.status import ChitScheduleSlot, TimelineStatus, ValidationIssue, ValidationResult

MIN_NAME_LENGTH = 2


def issues_from_pydantic(error: ValidationError) -> list[ValidationIssue]:
    """Stage 1: turn a pydantic ValidationError into ValidationIssues."""
    issues = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "payload"
        issues.append(ValidationIssue(
            field=field,
            issue_type=item.get("type", "invalid"),
            message=f"{field}: {item.get('msg', 'invalid value')}",
            severity="error",
        ))
    return issues


class LedgerValidator:
    """
    Stage 2 business-rule checks, one method per kind of input.

    Every method returns a ValidationResult; nothing here raises. Dates are
    checked against the `today` passed in so results are reproducible.
    """

    # -------------------------------------------------------------------------
    # Field-level checks
    # -------------------------------------------------------------------------

    def _amount(
        self,
        issues: list[ValidationIssue],
        field: str,
        amount: Optional[Decimal],
        allow_zero: bool = False,
    ) -> None:
        if amount is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message="Enter a valid amount",
            ))
            return
        if amount < 0 or (amount == 0 and not allow_zero):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message="Amount must be greater than zero" if not allow_zero else "Amount cannot be negative",
                suggested_fix="Enter a positive amount",
            ))
            return
        if amount != amount.quantize(Decimal("0.01")):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message="Amount can have at most two decimal places",
                suggested_fix=f"Use {amount.quantize(Decimal('0.01'))}",
            ))

    def _name(self, issues: list[ValidationIssue], field: str, value: Optional[str]) -> None:
        trimmed = (value or "").strip()
        if not trimmed:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message="This field cannot be empty",
            ))
        elif len(trimmed) < MIN_NAME_LENGTH:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_short",
                message=f"Minimum {MIN_NAME_LENGTH} characters required",
            ))

    def _not_future(self, issues: list[ValidationIssue], field: str, when: dt.date, today: dt.date) -> None:
        if when > today:
            issues.append(ValidationIssue(
                field=field,
                issue_type="future_date",
                message=f"Date ({when.isoformat()}) cannot be in the future",
                suggested_fix="Use today or an earlier date",
            ))

    def _not_past(self, issues: list[ValidationIssue], field: str, when: dt.date, today: dt.date) -> None:
        if when < today:
            issues.append(ValidationIssue(
                field=field,
                issue_type="past_date",
                message=f"Date ({when.isoformat()}) cannot be in the past",
                suggested_fix="Use today or a later date",
            ))

    # -------------------------------------------------------------------------
    # Profile & settings
    # -------------------------------------------------------------------------

    def validate_profile(self, profile: UserProfile, today: dt.date) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "name", profile.name)
        if profile.dob is not None:
            self._not_future(issues, "dob", profile.dob, today)
        return ValidationResult(operation="update_profile", issues=issues)

    def validate_settings(self, settings: UserSettings, profile: UserProfile) -> ValidationResult:
        """App lock needs a 4-digit PIN and a date of birth for recovery."""
        issues: list[ValidationIssue] = []
        if settings.app_lock_enabled:
            pin = settings.app_lock_pin
            if len(pin) != 4 or not pin.isdigit():
                issues.append(ValidationIssue(
                    field="app_lock_pin",
                    issue_type="invalid_format",
                    message="PIN must be 4 digits.",
                ))
            if profile.dob is None:
                issues.append(ValidationIssue(
                    field="dob",
                    issue_type="missing",
                    message="Security Key (DOB) is required to enable App Lock.",
                    suggested_fix="Set a date of birth on the profile first",
                ))
        if not settings.currency.strip():
            issues.append(ValidationIssue(
                field="currency",
                issue_type="missing",
                message="Currency cannot be empty",
            ))
        return ValidationResult(operation="update_settings", issues=issues)

    def validate_label(self, label: str, operation: str) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "label", label)
        return ValidationResult(operation=operation, issues=issues)

    # -------------------------------------------------------------------------
    # Income & expenses
    # -------------------------------------------------------------------------

    def validate_income(self, income: Income, today: dt.date, operation: str = "add_income") -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "category", income.category)
        self._amount(issues, "amount", income.amount)
        self._not_future(issues, "date", income.date, today)
        return ValidationResult(operation=operation, issues=issues)

    def validate_expense(self, expense: Expense, operation: str = "add_expense") -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "category", expense.category)
        self._amount(issues, "amount", expense.amount)
        return ValidationResult(operation=operation, issues=issues)

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------

    def validate_loan(self, loan: Loan, operation: str = "add_loan") -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "name", loan.name)
        self._amount(issues, "total_amount", loan.total_amount)
        self._amount(issues, "emi_amount", loan.emi_amount)
        if loan.tenure_months < 1:
            issues.append(ValidationIssue(
                field="tenure_months",
                issue_type="out_of_range",
                message="Tenure must be at least one month",
            ))
        if loan.end_date < loan.start_date:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="inconsistent",
                message="End date is before start date",
            ))
        if loan.tenure_months >= 1 and loan.emi_amount * loan.tenure_months < loan.total_amount:
            issues.append(ValidationIssue(
                field="emi_amount",
                issue_type="suspicious_value",
                message="Installments over the tenure add up to less than the principal",
                severity="warning",
                suggested_fix="Check the EMI amount and tenure",
            ))
        return ValidationResult(operation=operation, issues=issues)

    def validate_loan_month(self, loan: Loan, key: str) -> ValidationResult:
        issues: list[ValidationIssue] = []
        if key not in {month_key(d) for d in schedule_dates(loan)}:
            issues.append(ValidationIssue(
                field="month_key",
                issue_type="out_of_range",
                message=f"{key} is not part of the tenure of {loan.name}",
            ))
        return ValidationResult(operation="toggle_loan_month_paid", issues=issues)

    # -------------------------------------------------------------------------
    # Informal debts
    # -------------------------------------------------------------------------

    def validate_borrowed(
        self,
        debt: BorrowedMoney,
        today: dt.date,
        operation: str = "add_borrowed",
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "person_name", debt.person_name)
        self._amount(issues, "total_amount", debt.total_amount)
        self._not_future(issues, "start_date", debt.start_date, today)
        if debt.total_paid > debt.total_amount:
            issues.append(ValidationIssue(
                field="total_amount",
                issue_type="overpayment",
                message=f"Repayments ({debt.total_paid:,.2f}) exceed the amount owed",
                suggested_fix="Raise the total or remove a payment",
            ))
        return ValidationResult(operation=operation, issues=issues)

    def validate_debt_payment(
        self,
        debt: BorrowedMoney,
        amount: Decimal,
        when: dt.date,
        today: dt.date,
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._amount(issues, "amount", amount)
        self._not_future(issues, "date", when, today)
        if not issues:
            overpayment = check_overpayment(debt, amount)
            if overpayment:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="overpayment",
                    message=overpayment,
                    suggested_fix=f"Cannot exceed total of {debt.total_amount:,.2f}",
                ))
        return ValidationResult(operation="record_debt_payment", issues=issues)

    # -------------------------------------------------------------------------
    # Chit funds & savings
    # -------------------------------------------------------------------------

    def validate_chit_fund(self, chit: ChitFund, operation: str = "add_chit_fund") -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "name", chit.name)
        if chit.total_chit_amount <= 0:
            issues.append(ValidationIssue(
                field="total_chit_amount",
                issue_type="invalid_value",
                message="Maturity Goal must be greater than zero.",
            ))
        self._amount(issues, "monthly_contribution", chit.monthly_contribution)
        if chit.monthly_contribution > chit.total_chit_amount > 0:
            issues.append(ValidationIssue(
                field="monthly_contribution",
                issue_type="out_of_range",
                message=(
                    f"Monthly EMI ({chit.monthly_contribution:,.2f}) cannot exceed "
                    f"the Maturity Goal ({chit.total_chit_amount:,.2f})."
                ),
            ))
        if chit.total_months < 1:
            issues.append(ValidationIssue(
                field="total_months",
                issue_type="out_of_range",
                message="A chit fund must run for at least one month",
            ))
        return ValidationResult(operation=operation, issues=issues)

    def validate_chit_entry(
        self,
        chit: ChitFund,
        slot: Optional[ChitScheduleSlot],
        key: str,
        amount_paid: Decimal,
        winning_bid: Optional[Decimal],
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        if slot is None:
            issues.append(ValidationIssue(
                field="month_key",
                issue_type="out_of_range",
                message=f"{key} is outside the schedule of {chit.name}",
            ))
        elif slot.status == TimelineStatus.FUTURE:
            issues.append(ValidationIssue(
                field="month_key",
                issue_type="future_date",
                message=f"Cannot record an entry for a future month ({slot.label})",
            ))
        self._amount(issues, "amount_paid", amount_paid, allow_zero=True)
        if amount_paid > chit.total_chit_amount:
            issues.append(ValidationIssue(
                field="amount_paid",
                issue_type="overpayment",
                message=(
                    f"Monthly paid amount cannot exceed total chit value "
                    f"({chit.total_chit_amount:,.2f})."
                ),
            ))
        if winning_bid is not None:
            self._amount(issues, "winning_bid", winning_bid, allow_zero=True)
        return ValidationResult(operation="submit_chit_entry", issues=issues)

    def validate_other_saving(self, saving: OtherSaving, operation: str = "add_other_saving") -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "name", saving.name)
        return ValidationResult(operation=operation, issues=issues)

    def validate_saving_entry(self, amount: Decimal, when: dt.date, today: dt.date) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._amount(issues, "amount", amount)
        self._not_future(issues, "date", when, today)
        return ValidationResult(operation="add_saving_entry", issues=issues)

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    def validate_reminder(
        self,
        reminder: FinancialReminder,
        today: dt.date,
        operation: str = "add_reminder",
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        self._name(issues, "title", reminder.title)
        if reminder.amount is not None:
            self._amount(issues, "amount", reminder.amount, allow_zero=True)
        self._not_past(issues, "due_date", reminder.due_date, today)
        self._not_past(issues, "reminder_date", reminder.reminder_date, today)
        if reminder.reminder_date > reminder.due_date:
            issues.append(ValidationIssue(
                field="reminder_date",
                issue_type="inconsistent",
                message="Alert date is after the due date",
                severity="warning",
            ))
        return ValidationResult(operation=operation, issues=issues)

    def validate_mark_paid(self, reminder: FinancialReminder) -> ValidationResult:
        issues: list[ValidationIssue] = []
        if reminder.is_completed:
            issues.append(ValidationIssue(
                field="is_completed",
                issue_type="invalid_state",
                message=f"{reminder.title} is already completed",
            ))
        return ValidationResult(operation="mark_reminder_paid", issues=issues)

    # -------------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------------

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Plain-text summary of a result, errors first."""
        if result.is_valid and not result.issues:
            return "All checks passed."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        warnings = [i for i in result.issues if i.severity == "warning"]
        if errors:
            lines.append("Please fix the following:")
            for issue in errors:
                lines.append(f"  - {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"    ({issue.suggested_fix})")
        if warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for issue in warnings:
                lines.append(f"  - {issue.message}")
        return "\n".join(lines)
