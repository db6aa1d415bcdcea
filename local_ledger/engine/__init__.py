"""
Derivation engine package.

Pure functions from snapshot records (plus an explicit `today`) to derived
status. Nothing here touches the store or persistence.
"""

from local_ledger.engine.chits import (
    build_entry,
    chit_schedule,
    chit_summary,
    find_slot,
    upsert_entry,
)
from local_ledger.engine.debts import check_overpayment, debt_status, total_outstanding
from local_ledger.engine.loans import (
    backfill_payments,
    calculate_end_date,
    loan_status,
    loan_timeline,
    mark_month_paid,
    toggle_month_payments,
)
from local_ledger.engine.reminders import (
    ReminderAlreadyCompleted,
    classify_reminder,
    group_reminders,
    mark_paid,
    urgent_count,
)
from local_ledger.engine.summary import monthly_totals

__all__ = [
    # Chit funds
    "build_entry",
    "chit_schedule",
    "chit_summary",
    "find_slot",
    "upsert_entry",
    # Debts
    "check_overpayment",
    "debt_status",
    "total_outstanding",
    # Loans
    "backfill_payments",
    "calculate_end_date",
    "loan_status",
    "loan_timeline",
    "mark_month_paid",
    "toggle_month_payments",
    # Reminders
    "ReminderAlreadyCompleted",
    "classify_reminder",
    "group_reminders",
    "mark_paid",
    "urgent_count",
    # Summary
    "monthly_totals",
]
