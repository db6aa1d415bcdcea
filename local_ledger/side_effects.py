"""
Linked-Transaction Side Effects

Post-processors run inside `LedgerStore.mutate`. Each one receives the
snapshot before the mutation and the snapshot the transform produced, and
returns that snapshot with any derived records folded in, so the source
change and its linked records are written together.

Rules:
- A loan whose payment list grew gets one "Loan EMI" expense and one
  payment notification per new payment.
- A loan that goes from incomplete to complete gets one success
  notification.
- A debt whose payment list grew gets a payment notification, plus a
  success notification when its balance reaches zero.

DESIGN DECISION: Side effects are detected by comparing the two snapshots,
never by flags stored on the records. Edits that do not add payments
(renames, un-paying a month) therefore create nothing, and replaying the
same snapshot creates nothing.
"""

import datetime as dt
from decimal import Decimal
from typing import Callable, Optional

from local_ledger.audit import AuditLogger
from local_ledger.engine.debts import debt_status
from local_ledger.engine.loans import loan_status
from local_ledger.models.base import revise
from local_ledger.models.ledger import LOAN_EMI_CATEGORY, Expense, LedgerSnapshot
from local_ledger.models.notification import NotificationBuilder, NotificationEntry, push_notifications

AUTO_LINK_PREFIX = "(Auto-link)"


def linked_expense(category: str, amount: Decimal, when: dt.date, note: str) -> Expense:
    """Expense derived from another record, tagged so the user can tell it apart."""
    return Expense(
        category=category,
        amount=amount,
        date=when,
        notes=f"{AUTO_LINK_PREFIX} {note}",
    )


class SideEffectProcessor:
    """
    Derives linked expenses and notifications from snapshot transitions.

    Usage:
        effects = SideEffectProcessor(clock=date.today, notification_limit=50)
        store = LedgerStore(storage, post_processors=effects.processors())
    """

    def __init__(
        self,
        clock: Callable[[], dt.date],
        notification_limit: int = 50,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._clock = clock
        self._notification_limit = notification_limit
        self._audit_logger = audit_logger or AuditLogger()

    def processors(self) -> list[Callable[[LedgerSnapshot, LedgerSnapshot], LedgerSnapshot]]:
        """Post-processors in the order they must run."""
        return [
            self.linked_loan_payments,
            self.loan_completion,
            self.linked_debt_payments,
        ]

    def notify(self, snapshot: LedgerSnapshot, entries: list[NotificationEntry]) -> LedgerSnapshot:
        """Prepend `entries` to the history unless notifications are switched off."""
        if not entries or not snapshot.settings.notifications_enabled:
            return snapshot
        for entry in entries:
            self._audit_logger.log_notification(entry)
        history = push_notifications(
            snapshot.notification_history,
            entries,
            self._notification_limit,
        )
        return revise(snapshot, notification_history=history)

    def linked_loan_payments(self, previous: LedgerSnapshot, current: LedgerSnapshot) -> LedgerSnapshot:
        before = {loan.id: loan for loan in previous.loans}
        expenses: list[Expense] = []
        notifications: list[NotificationEntry] = []

        for loan in current.loans:
            old = before.get(loan.id)
            if old is None or len(loan.payments) <= len(old.payments):
                continue
            known = {p.id for p in old.payments}
            for payment in loan.payments:
                if payment.id in known:
                    continue
                expense = linked_expense(
                    LOAN_EMI_CATEGORY,
                    payment.amount,
                    payment.date,
                    f"EMI payment for {loan.name}",
                )
                expenses.append(expense)
                self._audit_logger.log_linked_expense(expense.id, LOAN_EMI_CATEGORY, loan.id)
                notifications.append(NotificationBuilder.loan_payment_recorded(loan.name, payment.amount))

        if not expenses:
            return current
        current = revise(current, expenses=[*current.expenses, *expenses])
        return self.notify(current, notifications)

    def loan_completion(self, previous: LedgerSnapshot, current: LedgerSnapshot) -> LedgerSnapshot:
        today = self._clock()
        before = {loan.id: loan for loan in previous.loans}
        notifications = []
        for loan in current.loans:
            old = before.get(loan.id)
            if old is None:
                continue
            if not loan_status(old, today).is_completed and loan_status(loan, today).is_completed:
                notifications.append(NotificationBuilder.loan_completed(loan.name))
        return self.notify(current, notifications)

    def linked_debt_payments(self, previous: LedgerSnapshot, current: LedgerSnapshot) -> LedgerSnapshot:
        before = {debt.id: debt for debt in previous.borrowed}
        notifications = []
        for debt in current.borrowed:
            old = before.get(debt.id)
            if old is None or len(debt.payments) <= len(old.payments):
                continue
            known = {p.id for p in old.payments}
            for payment in debt.payments:
                if payment.id not in known:
                    notifications.append(
                        NotificationBuilder.debt_payment_recorded(debt.person_name, payment.amount)
                    )
            if not debt_status(old).is_completed and debt_status(debt).is_completed:
                notifications.append(NotificationBuilder.debt_cleared(debt.person_name))
        return self.notify(current, notifications)
