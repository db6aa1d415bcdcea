"""
In-app notification records.

Notifications are produced only by side-effect processors and are shown
by the notification center. Nothing in the engine reads them back.

DESIGN DECISION: History is most-recent-first and bounded. `push_notifications`
owns both rules so no caller has to remember the cap.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Sequence

from pydantic import Field

from local_ledger.models.base import LedgerModel, new_id, utc_now


class NotificationType(str, Enum):
    PAYMENT = "payment"
    ALERT = "alert"
    SUCCESS = "success"


class NotificationEntry(LedgerModel):
    """A single notification-center entry."""

    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., max_length=1000)
    timestamp: dt.datetime = Field(
        default_factory=utc_now,
        description="When the notification was raised (UTC)"
    )
    type: NotificationType = NotificationType.PAYMENT


def push_notifications(
    history: Sequence[NotificationEntry],
    new_entries: Sequence[NotificationEntry],
    limit: int,
) -> list[NotificationEntry]:
    """
    Prepend `new_entries` to `history`, newest first, keeping at most `limit`.

    `new_entries` is in emission order, so the last one ends up on top.
    """
    combined = [*reversed(new_entries), *history]
    return combined[:limit]


def _money(amount: Decimal) -> str:
    return f"{amount:,.2f}"


class NotificationBuilder:
    """
    Helper class to build notifications with the standard wording.

    Usage:
        entry = NotificationBuilder.loan_payment_recorded("Car loan", amount)
        entry = NotificationBuilder.debt_cleared("Ravi")
    """

    @staticmethod
    def loan_payment_recorded(loan_name: str, amount: Decimal) -> NotificationEntry:
        return NotificationEntry(
            title="EMI Paid",
            message=f"Payment of {_money(amount)} recorded for {loan_name}.",
            type=NotificationType.PAYMENT,
        )

    @staticmethod
    def loan_completed(loan_name: str) -> NotificationEntry:
        return NotificationEntry(
            title="Loan Completed",
            message=f"Congratulations! {loan_name} is fully paid off.",
            type=NotificationType.SUCCESS,
        )

    @staticmethod
    def debt_payment_recorded(person_name: str, amount: Decimal) -> NotificationEntry:
        return NotificationEntry(
            title="Debt Repayment",
            message=f"Paid {_money(amount)} to {person_name}.",
            type=NotificationType.PAYMENT,
        )

    @staticmethod
    def debt_cleared(person_name: str) -> NotificationEntry:
        return NotificationEntry(
            title="Debt Cleared",
            message=f"You have fully repaid {person_name}.",
            type=NotificationType.SUCCESS,
        )

