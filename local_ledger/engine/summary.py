"""
Dashboard totals.

Income and expenses are filtered to one calendar month. Savings and debt
figures are all-time, since they describe balances rather than flows.
"""

from decimal import Decimal
from typing import Iterable

from local_ledger.dates import month_key
from local_ledger.engine.chits import total_contributed
from local_ledger.engine.debts import total_outstanding
from local_ledger.engine.loans import running_in_month
from local_ledger.models.ledger import LedgerSnapshot, OtherSaving
from local_ledger.models.status import MonthlyTotals


def total_in_buckets(savings: Iterable[OtherSaving]) -> Decimal:
    return sum((s.total_saved for s in savings), Decimal("0"))


def monthly_totals(snapshot: LedgerSnapshot, key: str) -> MonthlyTotals:
    """
    Totals for month `key` ('YYYY-MM').

    `monthly_emis` only counts loans with an installment in that month.
    Linked "Loan EMI" expenses also appear in `expenses`; the two figures
    overlap and are never added together.
    """
    income = sum(
        (i.amount for i in snapshot.incomes if month_key(i.date) == key),
        Decimal("0"),
    )
    expenses = sum(
        (e.amount for e in snapshot.expenses if month_key(e.date) == key),
        Decimal("0"),
    )
    emis = sum(
        (loan.emi_amount for loan in snapshot.loans if running_in_month(loan, key)),
        Decimal("0"),
    )
    return MonthlyTotals(
        month_key=key,
        income=income,
        expenses=expenses,
        monthly_emis=emis,
        remaining_balance=max(Decimal("0"), income - expenses),
        debt_outstanding=total_outstanding(snapshot.borrowed),
        total_saved=total_contributed(snapshot.chit_funds) + total_in_buckets(snapshot.other_savings),
    )
