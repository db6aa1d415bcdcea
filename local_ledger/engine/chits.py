"""
Chit Fund Schedule Engine

A chit fund has exactly one draw per calendar month for `total_months`
months. The schedule pairs each month with the entry recorded for it.

DESIGN DECISION: Entries are keyed by calendar month, not by id. Submitting
an entry for a month that already has one replaces it in place (same id,
same position), so a fund can never hold two entries for one month.
"""

import datetime as dt
from decimal import Decimal
from typing import Callable, Iterable, Optional

from local_ledger.dates import add_months, month_key, month_label
from local_ledger.engine.loans import timeline_status
from local_ledger.models.base import new_id, revise
from local_ledger.models.ledger import ChitFund, ChitFundEntry
from local_ledger.models.status import ChitScheduleSlot, ChitSummary


def _entry_for(chit: ChitFund, key: str) -> Optional[ChitFundEntry]:
    return next((e for e in chit.entries if month_key(e.date) == key), None)


def chit_schedule(chit: ChitFund, today: dt.date) -> list[ChitScheduleSlot]:
    """One slot per month, anchored on `chit_day` (clamped to month end)."""
    slots = []
    for i in range(chit.total_months):
        when = add_months(chit.start_date, i, day=chit.chit_day)
        key = month_key(when)
        slots.append(ChitScheduleSlot(
            month_number=i + 1,
            month_key=key,
            date=when,
            label=month_label(when),
            status=timeline_status(when, today),
            entry=_entry_for(chit, key),
        ))
    return slots


def find_slot(chit: ChitFund, key: str, today: dt.date) -> Optional[ChitScheduleSlot]:
    return next((s for s in chit_schedule(chit, today) if s.month_key == key), None)


def chit_summary(chit: ChitFund, today: dt.date) -> ChitSummary:
    total_paid = sum((e.amount_paid for e in chit.entries), Decimal("0"))
    total_received = sum((e.amount_received for e in chit.entries), Decimal("0"))
    return ChitSummary(
        total_paid=total_paid,
        total_received=total_received,
        net_position=total_received - total_paid,
        months_recorded=len(chit.entries),
        is_taken=any(e.is_taken for e in chit.entries),
        schedule=chit_schedule(chit, today),
    )


def build_entry(
    when: dt.date,
    *,
    is_taken: bool = False,
    taken_by: Optional[str] = None,
    amount_paid: Decimal = Decimal("0"),
    amount_received: Optional[Decimal] = None,
    winning_bid: Optional[Decimal] = None,
    notes: Optional[str] = None,
    entry_id: Optional[str] = None,
    make_id: Callable[[], str] = new_id,
) -> ChitFundEntry:
    """
    Build the entry for one month.

    When taken, `amount_received` falls back to `winning_bid`; when not
    taken nothing is received.
    """
    if is_taken:
        received = amount_received if amount_received else (winning_bid or Decimal("0"))
    else:
        received = Decimal("0")
    return ChitFundEntry(
        id=entry_id or make_id(),
        date=when,
        is_taken=is_taken,
        taken_by=taken_by or None,
        amount_paid=amount_paid,
        amount_received=received,
        winning_bid=winning_bid,
        notes=notes or None,
    )


def upsert_entry(chit: ChitFund, entry: ChitFundEntry) -> ChitFund:
    """Replace the entry for `entry`'s month in place, or append a new one."""
    key = month_key(entry.date)
    existing = _entry_for(chit, key)
    if existing is None:
        return revise(chit, entries=[*chit.entries, entry])
    replacement = revise(entry, id=existing.id)
    entries = [replacement if e.id == existing.id else e for e in chit.entries]
    return revise(chit, entries=entries)


def total_contributed(chits: Iterable[ChitFund]) -> Decimal:
    return sum(
        (e.amount_paid for chit in chits for e in chit.entries),
        Decimal("0"),
    )
