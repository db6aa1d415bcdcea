"""
Main Orchestrator for Local Ledger

This module ties the components together and defines every named operation
the UI can invoke on the ledger:
1. Validate the input (schema, then business rules)
2. Build a pure transform of the snapshot
3. Hand it to the store, which runs side effects and persists once

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the store without passing validation
- Every write goes through `LedgerStore.mutate` (no direct collection edits)
- Every rejection and mutation is audited

Operations return None. Callers read the new state through `snapshot` and
the derived-status helpers at the bottom of `LedgerService`.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar, Union

from pydantic import ValidationError

from local_ledger.audit import AuditLogger, configure_logging
from local_ledger.config import LedgerSettings, get_settings
from local_ledger.dates import month_key
from local_ledger.engine import chits as chit_engine
from local_ledger.engine import debts as debt_engine
from local_ledger.engine import loans as loan_engine
from local_ledger.engine import reminders as reminder_engine
from local_ledger.engine.summary import monthly_totals
from local_ledger.exceptions import EntityNotFoundError, ImportRejectedError, LedgerValidationError
from local_ledger.models.base import LedgerModel, new_id, revise, utc_now
from local_ledger.models.ledger import (
    BorrowedMoney,
    CategoryKind,
    ChitFund,
    Expense,
    FinancialReminder,
    Income,
    LedgerSnapshot,
    Loan,
    OtherSaving,
    OtherSavingEntry,
    Payment,
    UserProfile,
    UserSettings,
    available_categories,
    default_snapshot,
)
from local_ledger.models.status import (
    ChitSummary,
    DebtStatus,
    LoanStatus,
    MonthlyTotals,
    ReminderGroups,
    ValidationResult,
)
from local_ledger.services.backup import export_snapshot, parse_backup
from local_ledger.services.storage import JsonFileSnapshotStorage, SnapshotStorageInterface
from local_ledger.side_effects import SideEffectProcessor, linked_expense
from local_ledger.store import LedgerStore
from local_ledger.validation import LedgerValidator, issues_from_pydantic

RecordT = TypeVar("RecordT", bound=LedgerModel)
Payload = Mapping[str, Any]


# =============================================================================
# COLLECTION HELPERS
# =============================================================================

def _find(items: Sequence[RecordT], item_id: str, kind: str) -> RecordT:
    for item in items:
        if item.id == item_id:
            return item
    raise EntityNotFoundError(f"{kind} {item_id!r} not found")


def _replace(items: Sequence[RecordT], replacement: RecordT, kind: str) -> list[RecordT]:
    """Swap the record with `replacement.id` in place, keeping order."""
    _find(items, replacement.id, kind)
    return [replacement if item.id == replacement.id else item for item in items]


def _without(items: Sequence[RecordT], item_id: str) -> list[RecordT]:
    return [item for item in items if item.id != item_id]


def _field_names(model_cls: type[LedgerModel], payload: Payload) -> dict[str, Any]:
    """Map camelCase keys of `payload` onto `model_cls` attribute names."""
    by_alias = {
        info.alias: name
        for name, info in model_cls.model_fields.items()
        if info.alias
    }
    return {by_alias.get(key, key): value for key, value in payload.items()}


# =============================================================================
# LEDGER SERVICE
# =============================================================================

class LedgerService:
    """
    The UI boundary of the ledger.

    Flow of every write:
    1. Build the record from the payload (schema validation)
    2. Run the business-rule validator
    3. Mutate the store (side effects + one write)

    A rejected operation raises LedgerValidationError or
    EntityNotFoundError and leaves the store untouched.
    """

    def __init__(
        self,
        store: LedgerStore,
        validator: Optional[LedgerValidator] = None,
        clock: Callable[[], dt.date] = dt.date.today,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or LedgerValidator()
        self._clock = clock
        self._audit_logger = audit_logger or store.audit_logger

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._store.get()

    def today(self) -> dt.date:
        return self._clock()

    def _reject(self, result: ValidationResult) -> None:
        self._audit_logger.log_validation_rejected(
            result.operation,
            [issue.model_dump() for issue in result.issues],
        )
        raise LedgerValidationError(result)

    def _check(self, result: ValidationResult) -> None:
        if result.has_errors:
            self._reject(result)

    def _build(self, model_cls: type[RecordT], operation: str, fields: dict[str, Any]) -> RecordT:
        """Stage 1 validation: construct the record or reject the operation."""
        try:
            return model_cls(**fields)
        except ValidationError as e:
            self._reject(ValidationResult(operation=operation, issues=issues_from_pydantic(e)))

    def _new_record(self, model_cls: type[RecordT], operation: str, payload: Payload, **overrides) -> RecordT:
        fields = _field_names(model_cls, payload)
        fields.pop("id", None)
        return self._build(model_cls, operation, {**fields, "id": new_id(), **overrides})

    def _replacement(
        self,
        model_cls: type[RecordT],
        operation: str,
        existing: RecordT,
        payload: Payload,
        keep: Sequence[str] = (),
        **overrides,
    ) -> RecordT:
        """
        Full replacement of `existing` built from `payload`.

        The id is always preserved. Fields named in `keep` (sub-collections
        such as payment lists) carry over when the payload omits them.
        """
        fields = _field_names(model_cls, payload)
        for name in keep:
            if name not in fields:
                fields[name] = getattr(existing, name)
        return self._build(model_cls, operation, {**fields, **overrides, "id": existing.id})

    def _mutate(self, fn: Callable[[LedgerSnapshot], LedgerSnapshot], operation: str) -> None:
        self._store.mutate(fn, operation)

    # -------------------------------------------------------------------------
    # Profile & settings
    # -------------------------------------------------------------------------

    def update_profile(self, payload: Payload) -> None:
        """Merge `payload` over the current profile."""
        current = self.snapshot.profile
        profile = self._build(
            UserProfile, "update_profile",
            {**dict(current), **_field_names(UserProfile, payload)},
        )
        self._check(self._validator.validate_profile(profile, self.today()))
        self._mutate(lambda s: revise(s, profile=profile), "update_profile")

    def update_settings(self, payload: Payload) -> None:
        """Merge `payload` over the current settings."""
        snapshot = self.snapshot
        settings = self._build(
            UserSettings, "update_settings",
            {**dict(snapshot.settings), **_field_names(UserSettings, payload)},
        )
        self._check(self._validator.validate_settings(settings, snapshot.profile))
        self._mutate(lambda s: revise(s, settings=settings), "update_settings")

    def complete_onboarding(self, profile: Optional[Payload] = None, currency: Optional[str] = None) -> None:
        """Store the onboarding profile and mark onboarding as done."""
        snapshot = self.snapshot
        new_profile = snapshot.profile
        if profile is not None:
            new_profile = self._build(
                UserProfile, "complete_onboarding",
                {**dict(snapshot.profile), **_field_names(UserProfile, profile)},
            )
            self._check(self._validator.validate_profile(new_profile, self.today()))
        changes: dict[str, Any] = {"has_completed_onboarding": True}
        if currency:
            changes["currency"] = currency
        settings = revise(snapshot.settings, **changes)
        self._mutate(lambda s: revise(s, profile=new_profile, settings=settings), "complete_onboarding")

    def _add_label(self, kind: CategoryKind, label: str, operation: str) -> None:
        self._check(self._validator.validate_label(label, operation))
        self._mutate(
            lambda s: revise(s, settings=s.settings.with_label(kind, label)),
            operation,
        )

    def add_custom_income_category(self, label: str) -> None:
        self._add_label(CategoryKind.INCOME, label, "add_custom_income_category")

    def add_custom_expense_category(self, label: str) -> None:
        self._add_label(CategoryKind.EXPENSE, label, "add_custom_expense_category")

    def add_custom_reminder_type(self, label: str) -> None:
        self._add_label(CategoryKind.REMINDER_TYPE, label, "add_custom_reminder_type")

    def add_custom_reminder_category(self, label: str) -> None:
        self._add_label(CategoryKind.REMINDER_CATEGORY, label, "add_custom_reminder_category")

    def reset_data(self) -> None:
        """Replace everything with an empty ledger (onboarding starts again)."""
        fresh = default_snapshot(self.snapshot.settings.currency)
        self._store.replace(fresh, "reset_data")

    # -------------------------------------------------------------------------
    # Income & expenses
    # -------------------------------------------------------------------------

    def add_income(self, payload: Payload) -> None:
        income = self._new_record(Income, "add_income", payload, last_updated=utc_now())
        self._check(self._validator.validate_income(income, self.today()))
        self._mutate(lambda s: revise(s, incomes=[*s.incomes, income]), "add_income")

    def update_income(self, income_id: str, payload: Payload) -> None:
        existing = _find(self.snapshot.incomes, income_id, "Income")
        income = self._replacement(Income, "update_income", existing, payload, last_updated=utc_now())
        self._check(self._validator.validate_income(income, self.today(), "update_income"))
        self._mutate(lambda s: revise(s, incomes=_replace(s.incomes, income, "Income")), "update_income")

    def delete_income(self, income_id: str) -> None:
        self._mutate(lambda s: revise(s, incomes=_without(s.incomes, income_id)), "delete_income")

    def add_expense(self, payload: Payload) -> None:
        expense = self._new_record(Expense, "add_expense", payload)
        self._check(self._validator.validate_expense(expense))
        self._mutate(lambda s: revise(s, expenses=[*s.expenses, expense]), "add_expense")

    def update_expense(self, expense_id: str, payload: Payload) -> None:
        existing = _find(self.snapshot.expenses, expense_id, "Expense")
        expense = self._replacement(Expense, "update_expense", existing, payload)
        self._check(self._validator.validate_expense(expense, "update_expense"))
        self._mutate(lambda s: revise(s, expenses=_replace(s.expenses, expense, "Expense")), "update_expense")

    def delete_expense(self, expense_id: str) -> None:
        self._mutate(lambda s: revise(s, expenses=_without(s.expenses, expense_id)), "delete_expense")

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------

    def add_loan(self, payload: Payload, backfill: bool = True) -> None:
        """
        Add a loan.

        With `backfill`, installment months before the current month are
        recorded as paid, for loans entered part-way through their tenure.
        Backfilled payments do not create linked expenses.
        """
        loan = self._new_record(Loan, "add_loan", payload)
        self._check(self._validator.validate_loan(loan))
        if backfill:
            loan = loan_engine.backfill_payments(loan, self.today())
        self._mutate(lambda s: revise(s, loans=[*s.loans, loan]), "add_loan")

    def update_loan(self, loan_id: str, payload: Payload) -> None:
        """Replace a loan; payments carry over unless the payload supplies them."""
        existing = _find(self.snapshot.loans, loan_id, "Loan")
        loan = self._replacement(Loan, "update_loan", existing, payload, keep=("payments",))
        self._check(self._validator.validate_loan(loan, "update_loan"))
        self._mutate(lambda s: revise(s, loans=_replace(s.loans, loan, "Loan")), "update_loan")

    def delete_loan(self, loan_id: str) -> None:
        self._mutate(lambda s: revise(s, loans=_without(s.loans, loan_id)), "delete_loan")

    def toggle_loan_month_paid(self, loan_id: str, key: str) -> None:
        """
        Flip one timeline month between paid and unpaid.

        Calling it on a paid month un-pays it; `mark_loan_month_paid` is the
        idempotent form.

        Marking a month paid adds a payment, which the side-effect processor
        turns into a "Loan EMI" expense.
        """
        loan = _find(self.snapshot.loans, loan_id, "Loan")
        self._check(self._validator.validate_loan_month(loan, key))

        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            current = _find(s.loans, loan_id, "Loan")
            toggled = loan_engine.toggle_month_payments(current, key)
            return revise(s, loans=_replace(s.loans, toggled, "Loan"))

        self._mutate(transform, "toggle_loan_month_paid")

    def mark_loan_month_paid(self, loan_id: str, key: str) -> None:
        """Mark one timeline month paid. An already-paid month is left alone and nothing is written."""
        loan = _find(self.snapshot.loans, loan_id, "Loan")
        self._check(self._validator.validate_loan_month(loan, key))
        if loan_engine.mark_month_paid(loan, key) is loan:
            return

        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            current = _find(s.loans, loan_id, "Loan")
            marked = loan_engine.mark_month_paid(current, key)
            return revise(s, loans=_replace(s.loans, marked, "Loan"))

        self._mutate(transform, "mark_loan_month_paid")

    # -------------------------------------------------------------------------
    # Informal debts
    # -------------------------------------------------------------------------

    def add_borrowed(self, payload: Payload, paid_now: Optional[Decimal] = None) -> None:
        """Add a debt, optionally with an opening repayment dated at its start."""
        fields = _field_names(BorrowedMoney, payload)
        if paid_now:
            start = fields.get("start_date") or self.today()
            fields["payments"] = [{"amount": paid_now, "date": start}]
        debt = self._new_record(BorrowedMoney, "add_borrowed", fields)
        self._check(self._validator.validate_borrowed(debt, self.today()))
        self._mutate(lambda s: revise(s, borrowed=[*s.borrowed, debt]), "add_borrowed")

    def update_borrowed(self, debt_id: str, payload: Payload) -> None:
        existing = _find(self.snapshot.borrowed, debt_id, "Debt")
        debt = self._replacement(
            BorrowedMoney, "update_borrowed", existing, payload,
            keep=("payments", "image_urls"),
        )
        self._check(self._validator.validate_borrowed(debt, self.today(), "update_borrowed"))
        self._mutate(lambda s: revise(s, borrowed=_replace(s.borrowed, debt, "Debt")), "update_borrowed")

    def delete_borrowed(self, debt_id: str) -> None:
        self._mutate(lambda s: revise(s, borrowed=_without(s.borrowed, debt_id)), "delete_borrowed")

    def record_debt_payment(
        self,
        debt_id: str,
        amount: Union[Decimal, int, str],
        when: Optional[dt.date] = None,
        image_urls: Sequence[str] = (),
    ) -> None:
        """Append a repayment. Rejected if it would exceed the amount owed."""
        debt = _find(self.snapshot.borrowed, debt_id, "Debt")
        payment = self._build(Payment, "record_debt_payment", {
            "id": new_id(),
            "amount": amount,
            "date": when or self.today(),
            "image_urls": [url for url in image_urls if url],
        })
        self._check(self._validator.validate_debt_payment(debt, payment.amount, payment.date, self.today()))

        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            current = _find(s.borrowed, debt_id, "Debt")
            updated = revise(current, payments=[*current.payments, payment])
            return revise(s, borrowed=_replace(s.borrowed, updated, "Debt"))

        self._mutate(transform, "record_debt_payment")

    def delete_debt_payment(self, debt_id: str, payment_id: str) -> None:
        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            debt = next((d for d in s.borrowed if d.id == debt_id), None)
            if debt is None:
                return s
            updated = revise(debt, payments=_without(debt.payments, payment_id))
            return revise(s, borrowed=_replace(s.borrowed, updated, "Debt"))

        self._mutate(transform, "delete_debt_payment")

    # -------------------------------------------------------------------------
    # Chit funds
    # -------------------------------------------------------------------------

    def add_chit_fund(self, payload: Payload) -> None:
        chit = self._new_record(ChitFund, "add_chit_fund", payload, entries=[])
        self._check(self._validator.validate_chit_fund(chit))
        self._mutate(lambda s: revise(s, chit_funds=[*s.chit_funds, chit]), "add_chit_fund")

    def update_chit_fund(self, chit_id: str, payload: Payload) -> None:
        existing = _find(self.snapshot.chit_funds, chit_id, "Chit fund")
        chit = self._replacement(ChitFund, "update_chit_fund", existing, payload, keep=("entries",))
        self._check(self._validator.validate_chit_fund(chit, "update_chit_fund"))
        self._mutate(
            lambda s: revise(s, chit_funds=_replace(s.chit_funds, chit, "Chit fund")),
            "update_chit_fund",
        )

    def delete_chit_fund(self, chit_id: str) -> None:
        self._mutate(lambda s: revise(s, chit_funds=_without(s.chit_funds, chit_id)), "delete_chit_fund")

    def submit_chit_entry(
        self,
        chit_id: str,
        key: str,
        *,
        is_taken: bool = False,
        taken_by: Optional[str] = None,
        amount_paid: Union[Decimal, int, str] = Decimal("0"),
        amount_received: Optional[Union[Decimal, int, str]] = None,
        winning_bid: Optional[Union[Decimal, int, str]] = None,
        notes: Optional[str] = None,
    ) -> None:
        """
        Record what happened in month `key` of a chit fund.

        A month that already has an entry gets it replaced in place.
        """
        chit = _find(self.snapshot.chit_funds, chit_id, "Chit fund")
        slot = chit_engine.find_slot(chit, key, self.today())
        self._save_chit_entry(
            chit, slot, key, None, "submit_chit_entry",
            is_taken=is_taken, taken_by=taken_by, amount_paid=amount_paid,
            amount_received=amount_received, winning_bid=winning_bid, notes=notes,
        )

    def update_chit_entry(
        self,
        chit_id: str,
        entry_id: str,
        *,
        is_taken: bool = False,
        taken_by: Optional[str] = None,
        amount_paid: Union[Decimal, int, str] = Decimal("0"),
        amount_received: Optional[Union[Decimal, int, str]] = None,
        winning_bid: Optional[Union[Decimal, int, str]] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Rewrite an existing entry. Its month (and so its date) never changes."""
        chit = _find(self.snapshot.chit_funds, chit_id, "Chit fund")
        entry = _find(chit.entries, entry_id, "Chit entry")
        key = month_key(entry.date)
        slot = chit_engine.find_slot(chit, key, self.today())
        self._save_chit_entry(
            chit, slot, key, entry_id, "update_chit_entry",
            is_taken=is_taken, taken_by=taken_by, amount_paid=amount_paid,
            amount_received=amount_received, winning_bid=winning_bid, notes=notes,
        )

    def _save_chit_entry(self, chit, slot, key, entry_id, operation, **values) -> None:
        decimals = self._build(_ChitEntryAmounts, operation, {
            "amount_paid": values.pop("amount_paid"),
            "amount_received": values.pop("amount_received"),
            "winning_bid": values.pop("winning_bid"),
        })
        self._check(self._validator.validate_chit_entry(
            chit, slot, key, decimals.amount_paid, decimals.winning_bid,
        ))
        entry = chit_engine.build_entry(
            slot.date,
            amount_paid=decimals.amount_paid,
            amount_received=decimals.amount_received,
            winning_bid=decimals.winning_bid,
            entry_id=entry_id,
            **values,
        )

        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            current = _find(s.chit_funds, chit.id, "Chit fund")
            updated = chit_engine.upsert_entry(current, entry)
            return revise(s, chit_funds=_replace(s.chit_funds, updated, "Chit fund"))

        self._mutate(transform, operation)

    def delete_chit_entry(self, chit_id: str, entry_id: str) -> None:
        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            chit = next((c for c in s.chit_funds if c.id == chit_id), None)
            if chit is None:
                return s
            updated = revise(chit, entries=_without(chit.entries, entry_id))
            return revise(s, chit_funds=_replace(s.chit_funds, updated, "Chit fund"))

        self._mutate(transform, "delete_chit_entry")

    # -------------------------------------------------------------------------
    # Other savings
    # -------------------------------------------------------------------------

    def add_other_saving(self, payload: Payload) -> None:
        saving = self._new_record(OtherSaving, "add_other_saving", payload, entries=[])
        self._check(self._validator.validate_other_saving(saving))
        self._mutate(lambda s: revise(s, other_savings=[*s.other_savings, saving]), "add_other_saving")

    def update_other_saving(self, saving_id: str, payload: Payload) -> None:
        existing = _find(self.snapshot.other_savings, saving_id, "Saving")
        saving = self._replacement(OtherSaving, "update_other_saving", existing, payload, keep=("entries",))
        self._check(self._validator.validate_other_saving(saving, "update_other_saving"))
        self._mutate(
            lambda s: revise(s, other_savings=_replace(s.other_savings, saving, "Saving")),
            "update_other_saving",
        )

    def delete_other_saving(self, saving_id: str) -> None:
        self._mutate(
            lambda s: revise(s, other_savings=_without(s.other_savings, saving_id)),
            "delete_other_saving",
        )

    def add_saving_entry(
        self,
        saving_id: str,
        amount: Union[Decimal, int, str],
        when: Optional[dt.date] = None,
        notes: Optional[str] = None,
    ) -> None:
        _find(self.snapshot.other_savings, saving_id, "Saving")
        entry = self._build(OtherSavingEntry, "add_saving_entry", {
            "id": new_id(),
            "amount": amount,
            "date": when or self.today(),
            "notes": notes or None,
        })
        self._check(self._validator.validate_saving_entry(entry.amount, entry.date, self.today()))

        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            saving = _find(s.other_savings, saving_id, "Saving")
            updated = revise(saving, entries=[*saving.entries, entry])
            return revise(s, other_savings=_replace(s.other_savings, updated, "Saving"))

        self._mutate(transform, "add_saving_entry")

    def delete_saving_entry(self, saving_id: str, entry_id: str) -> None:
        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            saving = next((x for x in s.other_savings if x.id == saving_id), None)
            if saving is None:
                return s
            updated = revise(saving, entries=_without(saving.entries, entry_id))
            return revise(s, other_savings=_replace(s.other_savings, updated, "Saving"))

        self._mutate(transform, "delete_saving_entry")

    # -------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------

    def add_reminder(self, payload: Payload) -> None:
        reminder = self._new_record(FinancialReminder, "add_reminder", payload, is_completed=False)
        self._check(self._validator.validate_reminder(reminder, self.today()))
        self._mutate(lambda s: revise(s, reminders=[*s.reminders, reminder]), "add_reminder")

    def update_reminder(self, reminder_id: str, payload: Payload) -> None:
        existing = _find(self.snapshot.reminders, reminder_id, "Reminder")
        reminder = self._replacement(
            FinancialReminder, "update_reminder", existing, payload,
            keep=("is_completed",),
        )
        self._check(self._validator.validate_reminder(reminder, self.today(), "update_reminder"))
        self._mutate(
            lambda s: revise(s, reminders=_replace(s.reminders, reminder, "Reminder")),
            "update_reminder",
        )

    def delete_reminder(self, reminder_id: str) -> None:
        self._mutate(lambda s: revise(s, reminders=_without(s.reminders, reminder_id)), "delete_reminder")

    def mark_reminder_paid(self, reminder_id: str) -> None:
        """
        Settle the current occurrence of a reminder.

        A reminder with an amount also gets a linked expense (category = the
        reminder type, dated on the due date being settled), written in the
        same mutation.
        """
        reminder = _find(self.snapshot.reminders, reminder_id, "Reminder")
        self._check(self._validator.validate_mark_paid(reminder))
        created: list[Expense] = []

        def transform(s: LedgerSnapshot) -> LedgerSnapshot:
            current = _find(s.reminders, reminder_id, "Reminder")
            settled = reminder_engine.mark_paid(current)
            expenses = s.expenses
            if current.amount:
                expense = linked_expense(
                    current.type or "Payment",
                    current.amount,
                    current.due_date,
                    f"Payment for reminder: {current.title}",
                )
                created.append(expense)
                expenses = [*expenses, expense]
            return revise(
                s,
                reminders=_replace(s.reminders, settled, "Reminder"),
                expenses=expenses,
            )

        self._mutate(transform, "mark_reminder_paid")
        for expense in created:
            self._audit_logger.log_linked_expense(expense.id, expense.category, reminder_id)

    # -------------------------------------------------------------------------
    # Backup & notifications
    # -------------------------------------------------------------------------

    def export_data(self) -> str:
        """Pretty JSON backup of the whole ledger."""
        return export_snapshot(self.snapshot)

    def import_data(self, source: Union[str, bytes, Payload]) -> None:
        """
        Replace the ledger with a backup. All or nothing.

        Raises:
            ImportRejectedError: The backup is malformed; the ledger is unchanged
        """
        try:
            imported = parse_backup(source)
        except ImportRejectedError as e:
            self._audit_logger.log_import_rejected(str(e))
            raise
        self._store.replace(imported, "import_data")

    def clear_notifications(self) -> None:
        self._mutate(lambda s: revise(s, notification_history=[]), "clear_notifications")

    # -------------------------------------------------------------------------
    # Derived status (read-only)
    # -------------------------------------------------------------------------

    def categories(self, kind: CategoryKind) -> list[str]:
        return available_categories(self.snapshot.settings, kind)

    def loan_status(self, loan_id: str) -> LoanStatus:
        return loan_engine.loan_status(_find(self.snapshot.loans, loan_id, "Loan"), self.today())

    def chit_summary(self, chit_id: str) -> ChitSummary:
        return chit_engine.chit_summary(_find(self.snapshot.chit_funds, chit_id, "Chit fund"), self.today())

    def debt_status(self, debt_id: str) -> DebtStatus:
        return debt_engine.debt_status(_find(self.snapshot.borrowed, debt_id, "Debt"))

    def reminder_groups(self) -> ReminderGroups:
        return reminder_engine.group_reminders(self.snapshot.reminders, self.today())

    def monthly_totals(self, key: Optional[str] = None) -> MonthlyTotals:
        """Dashboard totals for month `key` (default: the current month)."""
        return monthly_totals(self.snapshot, key or month_key(self.today()))


class _ChitEntryAmounts(LedgerModel):
    """Coerces the loose amount arguments of a chit entry to Decimal."""

    amount_paid: Decimal = Decimal("0")
    amount_received: Optional[Decimal] = None
    winning_bid: Optional[Decimal] = None


# =============================================================================
# FACTORY
# =============================================================================

def create_ledger(
    settings: Optional[LedgerSettings] = None,
    storage: Optional[SnapshotStorageInterface] = None,
    clock: Callable[[], dt.date] = dt.date.today,
    audit_logger: Optional[AuditLogger] = None,
    configure_logs: bool = True,
) -> LedgerService:
    """
    Build a ready-to-use ledger service.

    Wires settings, logging, storage, side effects and the store together
    and hydrates the snapshot once.
    """
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings.log_level, settings.log_json)

    audit_logger = audit_logger or AuditLogger()
    storage = storage or JsonFileSnapshotStorage(
        settings.snapshot_path,
        retry_attempts=settings.save_retry_attempts,
    )
    effects = SideEffectProcessor(
        clock=clock,
        notification_limit=settings.notification_history_limit,
        audit_logger=audit_logger,
    )
    store = LedgerStore.hydrate(
        storage,
        audit_logger=audit_logger,
        post_processors=effects.processors(),
        currency=settings.currency,
    )
    return LedgerService(store, clock=clock, audit_logger=audit_logger)
