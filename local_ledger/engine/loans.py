"""
Loan Amortization Engine

Derives a loan's month-by-month timeline and its point-in-time status from
the stored payment list.

DESIGN DECISION: A month counts as paid when at least one payment is dated
inside it, regardless of the payment amount. Paid totals are therefore
`paid_months * emi_amount`, which keeps progress consistent with the
timeline even if an individual payment was entered with an odd amount.
"""

import datetime as dt
from decimal import Decimal
from typing import Callable, Iterable

from local_ledger.dates import add_months, month_key, month_label
from local_ledger.models.base import new_id, revise
from local_ledger.models.ledger import Loan, LoanPayment
from local_ledger.models.status import LoanStatus, LoanTimelineMonth, TimelineStatus


def calculate_end_date(start_date: dt.date, tenure_months: int) -> dt.date:
    """Start date shifted by the tenure (day clamped)."""
    return add_months(start_date, tenure_months)


def schedule_dates(loan: Loan) -> list[dt.date]:
    """Due date of every installment, in order."""
    return [
        add_months(loan.start_date, i, day=loan.due_day)
        for i in range(loan.tenure_months)
    ]


def timeline_status(when: dt.date, today: dt.date) -> TimelineStatus:
    if month_key(when) == month_key(today):
        return TimelineStatus.CURRENT
    if when < today:
        return TimelineStatus.PAST
    return TimelineStatus.FUTURE


def _paid_keys(payments: Iterable[LoanPayment]) -> set[str]:
    return {month_key(p.date) for p in payments}


def loan_timeline(loan: Loan, today: dt.date) -> list[LoanTimelineMonth]:
    """One entry per installment month in `[0, tenure_months)`."""
    paid = _paid_keys(loan.payments)
    timeline = []
    for index, due in enumerate(schedule_dates(loan)):
        key = month_key(due)
        timeline.append(LoanTimelineMonth(
            month_index=index,
            month_key=key,
            date=due,
            label=month_label(due),
            is_paid=key in paid,
            status=timeline_status(due, today),
        ))
    return timeline


def loan_status(loan: Loan, today: dt.date) -> LoanStatus:
    """
    Point-in-time status of a loan.

    Payments dated outside every timeline month are ignored. Zero tenure
    or a zero installment yields 0% progress rather than an error.
    """
    timeline = loan_timeline(loan, today)
    paid_months = sum(1 for month in timeline if month.is_paid)

    total_payable = loan.emi_amount * loan.tenure_months
    total_paid = loan.emi_amount * paid_months
    remaining_balance = max(Decimal("0"), total_payable - total_paid)
    remaining_emis = loan.tenure_months - paid_months

    if total_payable > 0:
        progress = min(100.0, float(total_paid / total_payable * 100))
    else:
        progress = 0.0

    is_past_tenure = today > loan.end_date
    is_completed = remaining_balance <= 0 or (is_past_tenure and remaining_emis <= 0)

    return LoanStatus(
        paid_months=paid_months,
        total_paid=total_paid,
        total_payable=total_payable,
        remaining_balance=remaining_balance,
        remaining_emis=remaining_emis,
        progress=progress,
        is_past_tenure=is_past_tenure,
        is_completed=is_completed,
        is_current_month_paid=month_key(today) in _paid_keys(loan.payments),
        timeline=timeline,
    )


def _due_date(loan: Loan, key: str) -> dt.date:
    due = next((d for d in schedule_dates(loan) if month_key(d) == key), None)
    if due is None:
        raise ValueError(f"{key} is outside the tenure of loan {loan.name!r}")
    return due


def toggle_month_payments(
    loan: Loan,
    key: str,
    make_id: Callable[[], str] = new_id,
) -> Loan:
    """
    Flip the paid state of one timeline month.

    Paid -> every payment dated in the month is removed.
    Unpaid -> one payment of `emi_amount` dated at the month's due date is
    appended.

    Raises:
        ValueError: `key` is not one of the loan's timeline months.
    """
    due = _due_date(loan, key)
    if key in _paid_keys(loan.payments):
        payments = [p for p in loan.payments if month_key(p.date) != key]
    else:
        payments = [*loan.payments, LoanPayment(id=make_id(), amount=loan.emi_amount, date=due)]
    return revise(loan, payments=payments)


def mark_month_paid(
    loan: Loan,
    key: str,
    make_id: Callable[[], str] = new_id,
) -> Loan:
    """
    Like `toggle_month_payments`, but a month that is already paid is left
    as it is and the same loan is returned.

    Raises:
        ValueError: `key` is not one of the loan's timeline months.
    """
    due = _due_date(loan, key)
    if key in _paid_keys(loan.payments):
        return loan
    return revise(loan, payments=[*loan.payments, LoanPayment(id=make_id(), amount=loan.emi_amount, date=due)])


def backfill_payments(
    loan: Loan,
    today: dt.date,
    make_id: Callable[[], str] = new_id,
) -> Loan:
    """
    Mark every installment month before the current month as paid.

    Used when a loan is entered part-way through its tenure. Months already
    holding a payment are left alone.
    """
    current = month_key(today)
    paid = _paid_keys(loan.payments)
    added = [
        LoanPayment(id=make_id(), amount=loan.emi_amount, date=due)
        for due in schedule_dates(loan)
        if month_key(due) < current and month_key(due) not in paid
    ]
    if not added:
        return loan
    return revise(loan, payments=[*loan.payments, *added])


def running_in_month(loan: Loan, key: str) -> bool:
    """Does the loan have an installment falling in month `key`?"""
    return any(month_key(d) == key for d in schedule_dates(loan))
