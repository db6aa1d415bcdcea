"""
Data Models Package

This package contains all Pydantic models used by the ledger engine.
Everything held in the snapshot must conform to these schemas.
"""

from local_ledger.models.base import LedgerModel, new_id, revise
from local_ledger.models.ledger import (
    BASE_EXPENSE_CATEGORIES,
    BASE_INCOME_CATEGORIES,
    BASE_REMINDER_TYPES,
    LOAN_EMI_CATEGORY,
    SNAPSHOT_COLLECTIONS,
    BorrowedMoney,
    CategoryKind,
    ChitFund,
    ChitFundEntry,
    Expense,
    FinancialReminder,
    Income,
    LedgerSnapshot,
    Loan,
    LoanPayment,
    LoanType,
    OtherSaving,
    OtherSavingEntry,
    Payment,
    ReminderFrequency,
    SavingType,
    Theme,
    UserProfile,
    UserSettings,
    available_categories,
    default_snapshot,
)
from local_ledger.models.notification import (
    NotificationBuilder,
    NotificationEntry,
    NotificationType,
    push_notifications,
)
from local_ledger.models.status import (
    ChitScheduleSlot,
    ChitSummary,
    DebtStatus,
    LoanStatus,
    LoanTimelineMonth,
    MonthlyTotals,
    ReminderGroups,
    ReminderState,
    TimelineStatus,
    ValidationIssue,
    ValidationResult,
)
from local_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Base
    "LedgerModel",
    "new_id",
    "revise",
    # Ledger models
    "BASE_EXPENSE_CATEGORIES",
    "BASE_INCOME_CATEGORIES",
    "BASE_REMINDER_TYPES",
    "LOAN_EMI_CATEGORY",
    "SNAPSHOT_COLLECTIONS",
    "BorrowedMoney",
    "CategoryKind",
    "ChitFund",
    "ChitFundEntry",
    "Expense",
    "FinancialReminder",
    "Income",
    "LedgerSnapshot",
    "Loan",
    "LoanPayment",
    "LoanType",
    "OtherSaving",
    "OtherSavingEntry",
    "Payment",
    "ReminderFrequency",
    "SavingType",
    "Theme",
    "UserProfile",
    "UserSettings",
    "available_categories",
    "default_snapshot",
    # Notifications
    "NotificationBuilder",
    "NotificationEntry",
    "NotificationType",
    "push_notifications",
    # Derived status
    "ChitScheduleSlot",
    "ChitSummary",
    "DebtStatus",
    "LoanStatus",
    "LoanTimelineMonth",
    "MonthlyTotals",
    "ReminderGroups",
    "ReminderState",
    "TimelineStatus",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
