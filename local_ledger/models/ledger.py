"""
Core Data Models for Local Ledger

These models define the strict schemas for everything held in the ledger
snapshot. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the exact export/import document (camelCase keys)
4. Be immutable, so a snapshot handed out by the store cannot drift
   (collections are tuples; `frozen` alone would leave lists editable)

DESIGN DECISION: Derived values are never stored as independent fields.
Loan progress comes from `payments`; a debt's `total_paid` is a computed
field over its `payments` and is re-derived on every construction.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import Field, computed_field, field_validator, model_validator

from local_ledger.dates import add_months
from local_ledger.models.base import LedgerModel, new_id, revise, utc_now
from local_ledger.models.notification import NotificationEntry


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class LoanType(str, Enum):
    """Bank loan kinds."""
    PERSONAL = "Personal"
    VEHICLE = "Vehicle"
    HOME = "Home"
    EDUCATION = "Education"
    OTHER = "Other"


class SavingType(str, Enum):
    """Kinds of discretionary saving bucket."""
    DAILY = "Daily"
    MONTHLY = "Monthly"
    PIGGY_BANK = "Piggy bank"
    GOLD = "Gold"
    INFORMAL = "Informal"
    OTHER = "Other"


class ReminderFrequency(str, Enum):
    """
    Reminder recurrence.

    ONE_TIME reminders complete when paid; the others advance.
    """
    ONE_TIME = "One-time"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class CategoryKind(str, Enum):
    """Which user-defined label list a category belongs to."""
    INCOME = "income"
    EXPENSE = "expense"
    REMINDER_TYPE = "reminder_type"
    REMINDER_CATEGORY = "reminder_category"


BASE_INCOME_CATEGORIES = ("Salary", "Business", "Freelance", "Investment", "Other")
BASE_EXPENSE_CATEGORIES = (
    "Rent", "Utilities", "Grocery", "Transport", "Insurance", "Subscriptions", "Other",
)
BASE_REMINDER_TYPES = ("Payment", "Subscription", "Credit Card", "Rent", "Chit Fund", "Other")

LOAN_EMI_CATEGORY = "Loan EMI"


def ordered_unique(labels: Iterable[str]) -> list[str]:
    """Insertion-ordered, case-sensitive de-duplication of labels."""
    seen: set[str] = set()
    result = []
    for label in labels:
        if label not in seen:
            seen.add(label)
            result.append(label)
    return result


# =============================================================================
# PROFILE & SETTINGS
# =============================================================================

class UserProfile(LedgerModel):
    """Display identity. `dob` only backs app-lock recovery."""

    name: str = Field(
        default="",
        max_length=100,
        description="Display name"
    )
    profile_image: Optional[str] = Field(
        default=None,
        description="Avatar reference (data URL or path)"
    )
    dob: Optional[dt.date] = Field(
        default=None,
        description="Date of birth, used as an app-lock recovery secret"
    )


class UserSettings(LedgerModel):
    """
    Feature toggles and user-defined label lists.

    The label lists behave as ordered sets: duplicates collapse on load
    and `with_label` is a no-op for a label already present.
    """

    currency: str = "INR"
    app_lock_enabled: bool = False
    app_lock_pin: str = ""
    biometrics_enabled: bool = False
    theme: Theme = Theme.LIGHT
    has_completed_onboarding: bool = False
    notifications_enabled: bool = True
    custom_income_categories: tuple[str, ...] = Field(default_factory=tuple)
    custom_expense_categories: tuple[str, ...] = Field(default_factory=tuple)
    custom_reminder_types: tuple[str, ...] = Field(default_factory=tuple)
    custom_reminder_categories: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator(
        'custom_income_categories',
        'custom_expense_categories',
        'custom_reminder_types',
        'custom_reminder_categories',
    )
    @classmethod
    def dedupe_labels(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(ordered_unique(label.strip() for label in v if label and label.strip()))

    def labels(self, kind: CategoryKind) -> list[str]:
        return list(getattr(self, _LABEL_FIELDS[kind]))

    def with_label(self, kind: CategoryKind, label: str) -> "UserSettings":
        """Return settings with `label` appended to the `kind` list (no-op if present)."""
        label = label.strip()
        current = self.labels(kind)
        if label in current:
            return self
        return revise(self, **{_LABEL_FIELDS[kind]: [*current, label]})


_LABEL_FIELDS = {
    CategoryKind.INCOME: "custom_income_categories",
    CategoryKind.EXPENSE: "custom_expense_categories",
    CategoryKind.REMINDER_TYPE: "custom_reminder_types",
    CategoryKind.REMINDER_CATEGORY: "custom_reminder_categories",
}

_BASE_LABELS = {
    CategoryKind.INCOME: BASE_INCOME_CATEGORIES,
    CategoryKind.EXPENSE: BASE_EXPENSE_CATEGORIES,
    CategoryKind.REMINDER_TYPE: BASE_REMINDER_TYPES,
    CategoryKind.REMINDER_CATEGORY: BASE_REMINDER_TYPES,
}


def available_categories(settings: UserSettings, kind: CategoryKind) -> list[str]:
    """Base labels followed by the user's custom labels, without repeats."""
    return ordered_unique([*_BASE_LABELS[kind], *settings.labels(kind)])


# =============================================================================
# INCOME & EXPENSES
# =============================================================================

class Income(LedgerModel):
    """A single income receipt."""

    id: str = Field(default_factory=new_id)
    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    date: dt.date
    notes: Optional[str] = Field(default=None, max_length=1000)
    last_updated: dt.datetime = Field(
        default_factory=utc_now,
        description="Refreshed on every add/update"
    )


class Expense(LedgerModel):
    """A single expense. Linked expenses carry an "(Auto-link)" note."""

    id: str = Field(default_factory=new_id)
    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    date: dt.date
    notes: Optional[str] = Field(default=None, max_length=1000)


# =============================================================================
# LOANS
# =============================================================================

class LoanPayment(LedgerModel):
    """One EMI payment. Its month decides which timeline month is paid."""

    id: str = Field(default_factory=new_id)
    amount: Decimal = Field(..., ge=0)
    date: dt.date


class Loan(LedgerModel):
    """
    Bank loan with a fixed monthly installment.

    There is deliberately no "amount paid" field: every status figure is
    derived from `payments` by `local_ledger.engine.loans`.
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    type: LoanType = LoanType.PERSONAL
    total_amount: Decimal = Field(..., ge=0, description="Principal")
    start_date: dt.date
    end_date: dt.date
    emi_amount: Decimal = Field(..., ge=0)
    due_day: int = Field(default=5, ge=1, le=31)
    tenure_months: int = Field(..., ge=0)
    payments: tuple[LoanPayment, ...] = Field(default_factory=tuple)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode='before')
    @classmethod
    def default_end_date(cls, data):
        """end_date = start_date + tenure_months when not supplied."""
        if not isinstance(data, dict) or data.get("end_date") or data.get("endDate"):
            return data
        start = data.get("start_date", data.get("startDate"))
        tenure = data.get("tenure_months", data.get("tenureMonths"))
        if start is None or tenure is None:
            return data
        try:
            start = start if isinstance(start, dt.date) else dt.date.fromisoformat(str(start))
            tenure = int(tenure)
        except (TypeError, ValueError):
            # Leave the malformed values for field validation to report
            return data
        return {**data, "end_date": add_months(start, tenure)}


# =============================================================================
# INFORMAL DEBTS
# =============================================================================

class Payment(LedgerModel):
    """A repayment towards an informal debt, with optional proof images."""

    id: str = Field(default_factory=new_id)
    amount: Decimal = Field(..., ge=0)
    date: dt.date
    image_urls: tuple[str, ...] = Field(default_factory=tuple)


class BorrowedMoney(LedgerModel):
    """Money owed to a person, repaid in arbitrary instalments."""

    id: str = Field(default_factory=new_id)
    person_name: str = Field(..., min_length=1, max_length=200)
    total_amount: Decimal = Field(..., ge=0)
    start_date: dt.date
    payments: tuple[Payment, ...] = Field(default_factory=tuple)
    image_urls: tuple[str, ...] = Field(default_factory=tuple)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @computed_field(alias="totalPaid")
    @property
    def total_paid(self) -> Decimal:
        """Cache of Σ payments.amount. Serialized, never read back."""
        return sum((p.amount for p in self.payments), Decimal("0"))


# =============================================================================
# CHIT FUNDS & SAVINGS
# =============================================================================

class ChitFundEntry(LedgerModel):
    """What happened in a chit fund for one calendar month."""

    id: str = Field(default_factory=new_id)
    date: dt.date
    is_taken: bool = False
    taken_by: Optional[str] = Field(default=None, max_length=200)
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    amount_received: Decimal = Field(default=Decimal("0"), ge=0)
    winning_bid: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)


class ChitFund(LedgerModel):
    """Rotating savings fund with one draw per month."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    total_chit_amount: Decimal = Field(..., ge=0, description="Maturity goal")
    monthly_contribution: Decimal = Field(..., ge=0)
    total_months: int = Field(..., ge=0)
    start_date: dt.date
    chit_day: int = Field(default=1, ge=1, le=31)
    entries: tuple[ChitFundEntry, ...] = Field(default_factory=tuple)


class OtherSavingEntry(LedgerModel):
    id: str = Field(default_factory=new_id)
    amount: Decimal = Field(..., ge=0)
    date: dt.date
    notes: Optional[str] = Field(default=None, max_length=1000)


class OtherSaving(LedgerModel):
    """Deposit-only saving bucket (piggy bank, gold, ...)."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    type: SavingType = SavingType.PIGGY_BANK
    entries: tuple[OtherSavingEntry, ...] = Field(default_factory=tuple)

    @property
    def total_saved(self) -> Decimal:
        return sum((e.amount for e in self.entries), Decimal("0"))


# =============================================================================
# REMINDERS
# =============================================================================

class FinancialReminder(LedgerModel):
    """
    Date-based reminder.

    Lifecycle: pending -> (mark paid) -> pending with advanced dates, or
    completed for one-time reminders.
    """

    id: str = Field(default_factory=new_id)
    type: str = Field(default="Payment", min_length=1, max_length=100)
    category: str = Field(default="Other", max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    due_date: dt.date
    reminder_date: dt.date
    frequency: ReminderFrequency = ReminderFrequency.MONTHLY
    is_completed: bool = False
    notes: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode='before')
    @classmethod
    def default_reminder_date(cls, data):
        """The alert fires on the due date unless told otherwise."""
        if not isinstance(data, dict) or data.get("reminder_date") or data.get("reminderDate"):
            return data
        due = data.get("due_date", data.get("dueDate"))
        if due is None:
            return data
        return {**data, "reminder_date": due}


# =============================================================================
# SNAPSHOT
# =============================================================================

class LedgerSnapshot(LedgerModel):
    """
    The whole ledger.

    This is both the persisted unit and the export/import document.
    """

    profile: UserProfile = Field(default_factory=UserProfile)
    settings: UserSettings = Field(default_factory=UserSettings)
    incomes: tuple[Income, ...] = Field(default_factory=tuple)
    expenses: tuple[Expense, ...] = Field(default_factory=tuple)
    loans: tuple[Loan, ...] = Field(default_factory=tuple)
    borrowed: tuple[BorrowedMoney, ...] = Field(default_factory=tuple)
    reminders: tuple[FinancialReminder, ...] = Field(default_factory=tuple)
    chit_funds: tuple[ChitFund, ...] = Field(default_factory=tuple)
    other_savings: tuple[OtherSaving, ...] = Field(default_factory=tuple)
    notification_history: tuple[NotificationEntry, ...] = Field(default_factory=tuple)

    def to_document(self) -> dict:
        """Serialize to the camelCase JSON-ready document."""
        return self.model_dump(mode="json", by_alias=True)


SNAPSHOT_COLLECTIONS = (
    "incomes",
    "expenses",
    "loans",
    "borrowed",
    "reminders",
    "chitFunds",
    "otherSavings",
    "notificationHistory",
)


def default_snapshot(currency: str = "INR") -> LedgerSnapshot:
    """Empty ledger with onboarding not yet completed."""
    return LedgerSnapshot(settings=UserSettings(currency=currency))
