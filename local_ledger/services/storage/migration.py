"""
Forward migration of persisted snapshot documents.

Documents written by older versions are upgraded in place before model
validation. Migration never fails: anything it does not recognise is left
for validation to judge.

Upgrades applied:
- missing top-level collections become []
- missing profile becomes the default profile
- settings are merged over the current defaults
- legacy loans (`paidMonths` + `emi`) become payment lists
- legacy debts without `payments` get an opening payment for `totalPaid`
- reminders without `reminderDate` take `dueDate`
- chit funds and savings without `entries` get []
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from local_ledger.dates import clamped_date, parse_month_key
from local_ledger.engine.loans import calculate_end_date
from local_ledger.models.base import new_id
from local_ledger.models.ledger import SNAPSHOT_COLLECTIONS, LedgerSnapshot, default_snapshot


def _as_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError):
        return None


def _as_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _as_int(value: Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _months_between(start: dt.date, end: dt.date) -> int:
    return max(0, (end.year - start.year) * 12 + (end.month - start.month))


def _migrate_loan(raw: dict) -> dict:
    loan = dict(raw)
    start = _as_date(loan.get("startDate"))

    if "emiAmount" not in loan and "emi" in loan:
        loan["emiAmount"] = loan["emi"]
    loan.pop("emi", None)

    if "dueDay" not in loan:
        loan["dueDay"] = start.day if start else 5

    if "tenureMonths" not in loan:
        end = _as_date(loan.get("endDate"))
        loan["tenureMonths"] = _months_between(start, end) if start and end else 0

    if "endDate" not in loan and start is not None:
        loan["endDate"] = calculate_end_date(start, _as_int(loan["tenureMonths"], 0)).isoformat()

    if "payments" not in loan:
        emi = loan.get("emiAmount", 0)
        payments = []
        for key in loan.get("paidMonths") or []:
            try:
                year, month = parse_month_key(key)
            except ValueError:
                continue
            payments.append({
                "id": new_id(),
                "amount": emi,
                "date": clamped_date(year, month, _as_int(loan["dueDay"], 5)).isoformat(),
            })
        loan["payments"] = payments
    loan.pop("paidMonths", None)
    return loan


def _migrate_borrowed(raw: dict) -> dict:
    debt = dict(raw)
    if "payments" not in debt:
        paid = _as_decimal(debt.get("totalPaid", 0))
        debt["payments"] = []
        if paid > 0 and debt.get("startDate"):
            debt["payments"].append({
                "id": new_id(),
                "amount": str(paid),
                "date": debt["startDate"],
                "imageUrls": [],
            })
    # Re-derived from payments by the model
    debt.pop("totalPaid", None)
    return debt


def _migrate_reminder(raw: dict) -> dict:
    reminder = dict(raw)
    if not reminder.get("reminderDate") and reminder.get("dueDate"):
        reminder["reminderDate"] = reminder["dueDate"]
    return reminder


def _with_entries(raw: dict) -> dict:
    record = dict(raw)
    record.setdefault("entries", [])
    return record


def migrate_snapshot(raw: dict) -> dict:
    """Upgrade a raw snapshot document to the current shape."""
    defaults = default_snapshot().to_document()
    doc = dict(raw)

    for key in SNAPSHOT_COLLECTIONS:
        if not isinstance(doc.get(key), list):
            doc[key] = []

    if not isinstance(doc.get("profile"), dict):
        doc["profile"] = defaults["profile"]
    settings = doc.get("settings") if isinstance(doc.get("settings"), dict) else {}
    doc["settings"] = {**defaults["settings"], **settings}

    doc["loans"] = [_migrate_loan(x) if isinstance(x, dict) else x for x in doc["loans"]]
    doc["borrowed"] = [_migrate_borrowed(x) if isinstance(x, dict) else x for x in doc["borrowed"]]
    doc["reminders"] = [_migrate_reminder(x) if isinstance(x, dict) else x for x in doc["reminders"]]
    doc["chitFunds"] = [_with_entries(x) if isinstance(x, dict) else x for x in doc["chitFunds"]]
    doc["otherSavings"] = [_with_entries(x) if isinstance(x, dict) else x for x in doc["otherSavings"]]
    return doc


def snapshot_from_document(raw: dict) -> LedgerSnapshot:
    """
    Migrate and validate a raw document.

    Raises:
        pydantic.ValidationError: The migrated document is still invalid
    """
    return LedgerSnapshot.model_validate(migrate_snapshot(raw))
