"""
Reminder Recurrence Engine

State machine:
    pending --mark_paid--> pending (dates advanced)   weekly/monthly/yearly
    pending --mark_paid--> completed                  one-time
    completed is terminal.

Overdue / due-today / upcoming are read-time classifications of a pending
reminder and are never stored.
"""

import datetime as dt
from typing import Iterable

from local_ledger.dates import add_months
from local_ledger.models.base import revise
from local_ledger.models.ledger import FinancialReminder, ReminderFrequency
from local_ledger.models.status import ReminderGroups, ReminderState


class ReminderAlreadyCompleted(ValueError):
    """mark_paid was called on a completed reminder."""
    pass


def next_occurrence(when: dt.date, frequency: ReminderFrequency) -> dt.date:
    """Advance one period; month/year steps clamp the day to month end."""
    if frequency == ReminderFrequency.WEEKLY:
        return when + dt.timedelta(days=7)
    if frequency == ReminderFrequency.MONTHLY:
        return add_months(when, 1)
    if frequency == ReminderFrequency.YEARLY:
        return add_months(when, 12)
    return when


def mark_paid(reminder: FinancialReminder) -> FinancialReminder:
    """
    Settle the current occurrence.

    Raises:
        ReminderAlreadyCompleted: the reminder is already completed.
    """
    if reminder.is_completed:
        raise ReminderAlreadyCompleted(f"Reminder {reminder.title!r} is already completed")
    if reminder.frequency == ReminderFrequency.ONE_TIME:
        return revise(reminder, is_completed=True)
    return revise(
        reminder,
        due_date=next_occurrence(reminder.due_date, reminder.frequency),
        reminder_date=next_occurrence(reminder.reminder_date, reminder.frequency),
    )


def classify_reminder(reminder: FinancialReminder, today: dt.date) -> ReminderState:
    if reminder.is_completed:
        return ReminderState.COMPLETED
    if reminder.due_date < today:
        return ReminderState.OVERDUE
    if reminder.due_date == today:
        return ReminderState.DUE_TODAY
    return ReminderState.UPCOMING


def group_reminders(reminders: Iterable[FinancialReminder], today: dt.date) -> ReminderGroups:
    buckets: dict[ReminderState, list[FinancialReminder]] = {state: [] for state in ReminderState}
    for reminder in sorted(reminders, key=lambda r: r.due_date):
        buckets[classify_reminder(reminder, today)].append(reminder)
    return ReminderGroups(
        overdue=buckets[ReminderState.OVERDUE],
        due_today=buckets[ReminderState.DUE_TODAY],
        upcoming=buckets[ReminderState.UPCOMING],
        completed=buckets[ReminderState.COMPLETED],
    )


def urgent_count(reminders: Iterable[FinancialReminder], today: dt.date) -> int:
    """Pending reminders due today or earlier."""
    return sum(
        1 for r in reminders
        if classify_reminder(r, today) in (ReminderState.OVERDUE, ReminderState.DUE_TODAY)
    )
