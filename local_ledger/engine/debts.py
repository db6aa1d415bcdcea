"""
Debt Reconciliation Engine

Status of informal (person-to-person) debts. `BorrowedMoney.total_paid` is
re-derived from the payment list by the model itself, so everything here
reads it directly.
"""

from decimal import Decimal
from typing import Iterable, Optional

from local_ledger.models.ledger import BorrowedMoney
from local_ledger.models.status import DebtStatus


def debt_status(debt: BorrowedMoney) -> DebtStatus:
    total_paid = debt.total_paid
    remaining = max(Decimal("0"), debt.total_amount - total_paid)
    if debt.total_amount > 0:
        progress = min(100.0, float(total_paid / debt.total_amount * 100))
    else:
        progress = 0.0
    return DebtStatus(
        total_paid=total_paid,
        remaining_balance=remaining,
        progress=progress,
        is_completed=remaining <= 0,
    )


def check_overpayment(debt: BorrowedMoney, amount: Decimal) -> Optional[str]:
    """Error message when `amount` would push repayments past the total, else None."""
    if debt.total_paid + amount > debt.total_amount:
        remaining = max(Decimal("0"), debt.total_amount - debt.total_paid)
        return (
            f"Payment exceeds remaining balance ({remaining:,.2f}) "
            f"owed to {debt.person_name}."
        )
    return None


def total_outstanding(debts: Iterable[BorrowedMoney]) -> Decimal:
    return sum((debt_status(d).remaining_balance for d in debts), Decimal("0"))
