"""
Integration tests for LedgerService: validation, linked side effects,
notifications, persistence and backup flows.

Today is fixed at 2024-06-15 (see conftest.py).
"""

import pytest
from datetime import date
from decimal import Decimal

from local_ledger import create_ledger
from local_ledger.config import LedgerSettings
from local_ledger.exceptions import EntityNotFoundError, ImportRejectedError, LedgerValidationError
from local_ledger.models import AuditEventType, CategoryKind, LOAN_EMI_CATEGORY, NotificationType
from local_ledger.services.storage import InMemorySnapshotStorage

from conftest import TODAY

LOAN_PAYLOAD = {
    "name": "Car loan",
    "type": "Vehicle",
    "totalAmount": "10000",
    "startDate": "2024-01-10",
    "emiAmount": "1000",
    "dueDay": 10,
    "tenureMonths": 12,
}


def _loan_id(service):
    return service.snapshot.loans[0].id


class TestIncomeAndExpenses:
    """Tests for plain records."""

    def test_add_income_persists(self, service, storage):
        service.add_income({"category": "Salary", "amount": "50000", "date": "2024-06-01"})
        income = service.snapshot.incomes[0]
        assert income.amount == Decimal("50000")
        assert storage.save_count == 1
        assert storage.load() == service.snapshot

    def test_future_income_is_rejected(self, service, storage, audit_logger):
        with pytest.raises(LedgerValidationError) as exc_info:
            service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-20"})
        assert exc_info.value.issues[0].issue_type == "future_date"
        assert service.snapshot.incomes == ()
        assert storage.save_count == 0
        assert audit_logger.events[-1].event_type == AuditEventType.VALIDATION_REJECTED

    @pytest.mark.parametrize("amount", ["0", "-5", "10.555"])
    def test_bad_amounts_are_rejected(self, service, amount):
        with pytest.raises(LedgerValidationError):
            service.add_expense({"category": "Grocery", "amount": amount, "date": "2024-06-01"})
        assert service.snapshot.expenses == ()

    def test_schema_errors_are_rejected(self, service):
        with pytest.raises(LedgerValidationError):
            service.add_expense({"amount": "10", "date": "2024-06-01"})

    def test_update_keeps_id(self, service):
        service.add_expense({"category": "Grocery", "amount": "120", "date": "2024-06-01"})
        expense_id = service.snapshot.expenses[0].id
        service.update_expense(expense_id, {"category": "Transport", "amount": "80", "date": "2024-06-02"})
        expense = service.snapshot.expenses[0]
        assert expense.id == expense_id
        assert expense.category == "Transport"

    def test_update_unknown_id(self, service):
        with pytest.raises(EntityNotFoundError):
            service.update_income("missing", {"category": "Salary", "amount": "1", "date": "2024-06-01"})

    def test_delete_unknown_id_is_noop(self, service):
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        service.delete_income("missing")
        assert len(service.snapshot.incomes) == 1

    def test_delete(self, service):
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        service.delete_income(service.snapshot.incomes[0].id)
        assert service.snapshot.incomes == ()

    def test_snapshot_cannot_be_edited_in_place(self, service, storage):
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        saves = storage.save_count
        with pytest.raises(AttributeError):
            service.snapshot.incomes.append(service.snapshot.incomes[0])
        with pytest.raises(AttributeError):
            service.snapshot.settings.custom_income_categories.append("Rental")
        assert len(service.snapshot.incomes) == 1
        assert storage.save_count == saves


class TestLoans:
    """Tests for loans and their linked EMI expenses."""

    def test_add_backfills_without_expenses(self, service):
        service.add_loan(LOAN_PAYLOAD)
        loan = service.snapshot.loans[0]
        assert len(loan.payments) == 5
        assert loan.end_date == date(2025, 1, 10)
        assert service.snapshot.expenses == ()
        assert service.snapshot.notification_history == ()

    def test_add_without_backfill(self, service):
        service.add_loan(LOAN_PAYLOAD, backfill=False)
        assert service.snapshot.loans[0].payments == ()

    def test_marking_month_paid_creates_linked_expense(self, service, storage):
        service.add_loan(LOAN_PAYLOAD)
        saves = storage.save_count
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")

        expenses = service.snapshot.expenses
        assert len(expenses) == 1
        assert expenses[0].category == LOAN_EMI_CATEGORY
        assert expenses[0].amount == Decimal("1000")
        assert expenses[0].date == date(2024, 6, 10)
        assert expenses[0].notes.startswith("(Auto-link)")
        assert service.snapshot.notification_history[0].title == "EMI Paid"
        assert storage.save_count == saves + 1

    def test_unmarking_keeps_expense(self, service):
        service.add_loan(LOAN_PAYLOAD)
        loan_id = _loan_id(service)
        service.toggle_loan_month_paid(loan_id, "2024-06")
        service.toggle_loan_month_paid(loan_id, "2024-06")
        assert len(service.snapshot.loans[0].payments) == 5
        assert len(service.snapshot.expenses) == 1

    def test_mark_paid_is_idempotent(self, service, storage):
        service.add_loan(LOAN_PAYLOAD)
        loan_id = _loan_id(service)
        service.mark_loan_month_paid(loan_id, "2024-06")
        saves = storage.save_count

        service.mark_loan_month_paid(loan_id, "2024-06")
        assert len(service.snapshot.loans[0].payments) == 6
        assert len(service.snapshot.expenses) == 1
        assert storage.save_count == saves

    def test_mark_paid_on_backfilled_month_links_nothing(self, service, storage):
        service.add_loan(LOAN_PAYLOAD)
        saves = storage.save_count
        service.mark_loan_month_paid(_loan_id(service), "2024-03")
        assert len(service.snapshot.loans[0].payments) == 5
        assert service.snapshot.expenses == ()
        assert storage.save_count == saves

    def test_month_outside_tenure_is_rejected(self, service):
        service.add_loan(LOAN_PAYLOAD)
        with pytest.raises(LedgerValidationError):
            service.toggle_loan_month_paid(_loan_id(service), "2025-02")

    def test_completion_notification(self, service):
        service.add_loan({**LOAN_PAYLOAD, "startDate": "2024-06-01", "tenureMonths": 1,
                          "totalAmount": "1000", "dueDay": 1})
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")

        history = service.snapshot.notification_history
        assert [n.title for n in history] == ["Loan Completed", "EMI Paid"]
        assert history[0].type == NotificationType.SUCCESS
        assert service.loan_status(_loan_id(service)).is_completed

        service.update_loan(_loan_id(service), {**LOAN_PAYLOAD, "name": "Paid-off car", "startDate": "2024-06-01",
                                                 "tenureMonths": 1, "totalAmount": "1000", "dueDay": 1})
        titles = [n.title for n in service.snapshot.notification_history]
        assert titles.count("Loan Completed") == 1

    def test_clear_notifications(self, service):
        service.add_loan(LOAN_PAYLOAD)
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")
        service.clear_notifications()
        assert service.snapshot.notification_history == ()
        assert len(service.snapshot.expenses) == 1

    def test_notifications_can_be_disabled(self, service):
        service.update_settings({"notificationsEnabled": False})
        service.add_loan(LOAN_PAYLOAD)
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")
        assert service.snapshot.notification_history == ()
        assert len(service.snapshot.expenses) == 1

    def test_update_preserves_payments(self, service):
        service.add_loan(LOAN_PAYLOAD)
        service.update_loan(_loan_id(service), {**LOAN_PAYLOAD, "name": "Family car"})
        loan = service.snapshot.loans[0]
        assert loan.name == "Family car"
        assert len(loan.payments) == 5

    def test_zero_tenure_is_rejected(self, service):
        with pytest.raises(LedgerValidationError):
            service.add_loan({**LOAN_PAYLOAD, "tenureMonths": 0})


class TestBorrowedMoney:
    """Tests for informal debts."""

    DEBT = {"personName": "Ravi", "totalAmount": "10000", "startDate": "2024-05-01"}

    def test_opening_payment(self, service):
        service.add_borrowed(self.DEBT, paid_now=Decimal("2000"))
        debt = service.snapshot.borrowed[0]
        assert debt.total_paid == Decimal("2000")
        assert debt.payments[0].date == date(2024, 5, 1)
        assert service.snapshot.notification_history == ()

    def test_overpayment_is_rejected(self, service):
        service.add_borrowed(self.DEBT, paid_now=Decimal("2000"))
        debt_id = service.snapshot.borrowed[0].id
        with pytest.raises(LedgerValidationError) as exc_info:
            service.record_debt_payment(debt_id, Decimal("9000"))
        assert exc_info.value.issues[0].issue_type == "overpayment"
        assert service.snapshot.borrowed[0].total_paid == Decimal("2000")

    def test_clearing_a_debt(self, service):
        service.add_borrowed(self.DEBT, paid_now=Decimal("2000"))
        debt_id = service.snapshot.borrowed[0].id
        service.record_debt_payment(debt_id, Decimal("8000"), date(2024, 6, 10), image_urls=["proof.png"])

        assert service.debt_status(debt_id).is_completed
        assert [n.title for n in service.snapshot.notification_history] == ["Debt Cleared", "Debt Repayment"]
        assert service.snapshot.borrowed[0].payments[-1].image_urls == ("proof.png",)
        assert service.snapshot.expenses == ()

    def test_delete_payment(self, service):
        service.add_borrowed(self.DEBT)
        debt_id = service.snapshot.borrowed[0].id
        service.record_debt_payment(debt_id, Decimal("500"))
        payment_id = service.snapshot.borrowed[0].payments[0].id
        service.delete_debt_payment(debt_id, payment_id)
        assert service.snapshot.borrowed[0].total_paid == Decimal("0")

    def test_payment_to_unknown_debt(self, service):
        with pytest.raises(EntityNotFoundError):
            service.record_debt_payment("missing", Decimal("10"))


class TestChitFunds:
    """Tests for chit funds and monthly entries."""

    CHIT = {
        "name": "Office chit",
        "totalChitAmount": "100000",
        "monthlyContribution": "5000",
        "totalMonths": 20,
        "startDate": "2024-01-01",
        "chitDay": 5,
    }

    def _chit_id(self, service):
        return service.snapshot.chit_funds[0].id

    def test_resubmitting_a_month_replaces_it(self, service):
        service.add_chit_fund(self.CHIT)
        chit_id = self._chit_id(service)
        service.submit_chit_entry(chit_id, "2024-03", amount_paid="5000")
        first_id = service.snapshot.chit_funds[0].entries[0].id

        service.submit_chit_entry(chit_id, "2024-03", is_taken=True, amount_paid="5000", winning_bid="80000")
        entries = service.snapshot.chit_funds[0].entries
        assert len(entries) == 1
        assert entries[0].id == first_id
        assert entries[0].amount_received == Decimal("80000")
        assert entries[0].date == date(2024, 3, 5)

    def test_future_month_is_rejected(self, service):
        service.add_chit_fund(self.CHIT)
        with pytest.raises(LedgerValidationError):
            service.submit_chit_entry(self._chit_id(service), "2024-07", amount_paid="5000")

    def test_month_outside_schedule_is_rejected(self, service):
        service.add_chit_fund(self.CHIT)
        with pytest.raises(LedgerValidationError):
            service.submit_chit_entry(self._chit_id(service), "2023-12", amount_paid="5000")

    def test_paid_above_chit_value_is_rejected(self, service):
        service.add_chit_fund(self.CHIT)
        with pytest.raises(LedgerValidationError):
            service.submit_chit_entry(self._chit_id(service), "2024-03", amount_paid="100001")

    def test_contribution_above_goal_is_rejected(self, service):
        with pytest.raises(LedgerValidationError):
            service.add_chit_fund({**self.CHIT, "monthlyContribution": "200000"})

    def test_update_and_delete_entry(self, service):
        service.add_chit_fund(self.CHIT)
        chit_id = self._chit_id(service)
        service.submit_chit_entry(chit_id, "2024-02", amount_paid="5000")
        entry_id = service.snapshot.chit_funds[0].entries[0].id

        service.update_chit_entry(chit_id, entry_id, amount_paid="4800", notes="Dividend")
        entry = service.snapshot.chit_funds[0].entries[0]
        assert entry.amount_paid == Decimal("4800")
        assert entry.notes == "Dividend"

        service.delete_chit_entry(chit_id, entry_id)
        assert service.snapshot.chit_funds[0].entries == ()

    def test_update_fund_preserves_entries(self, service):
        service.add_chit_fund(self.CHIT)
        chit_id = self._chit_id(service)
        service.submit_chit_entry(chit_id, "2024-02", amount_paid="5000")
        service.update_chit_fund(chit_id, {**self.CHIT, "name": "Family chit"})
        assert len(service.snapshot.chit_funds[0].entries) == 1
        assert service.chit_summary(chit_id).total_paid == Decimal("5000")


class TestOtherSavings:
    """Tests for deposit-only saving buckets."""

    def test_deposits(self, service):
        service.add_other_saving({"name": "Piggy bank", "type": "Piggy bank"})
        saving_id = service.snapshot.other_savings[0].id
        service.add_saving_entry(saving_id, Decimal("250"), date(2024, 6, 1))
        service.add_saving_entry(saving_id, Decimal("150"))
        assert service.snapshot.other_savings[0].total_saved == Decimal("400")

        entry_id = service.snapshot.other_savings[0].entries[0].id
        service.delete_saving_entry(saving_id, entry_id)
        assert service.snapshot.other_savings[0].total_saved == Decimal("150")

    def test_future_deposit_is_rejected(self, service):
        service.add_other_saving({"name": "Gold", "type": "Gold"})
        with pytest.raises(LedgerValidationError):
            service.add_saving_entry(service.snapshot.other_savings[0].id, Decimal("10"), date(2024, 7, 1))


class TestReminders:
    """Tests for reminders and their linked expenses."""

    RENT = {"type": "Rent", "title": "House rent", "amount": "15000", "dueDate": "2024-06-20"}

    def test_mark_paid_advances_and_links_expense(self, service):
        service.add_reminder(self.RENT)
        reminder_id = service.snapshot.reminders[0].id
        service.mark_reminder_paid(reminder_id)

        reminder = service.snapshot.reminders[0]
        assert reminder.due_date == date(2024, 7, 20)
        assert reminder.reminder_date == date(2024, 7, 20)
        expense = service.snapshot.expenses[0]
        assert expense.category == "Rent"
        assert expense.amount == Decimal("15000")
        assert expense.date == date(2024, 6, 20)
        assert expense.notes == "(Auto-link) Payment for reminder: House rent"

    def test_linked_expense_is_logged_after_commit(self, service, audit_logger):
        service.add_reminder(self.RENT)
        reminder_id = service.snapshot.reminders[0].id
        service.mark_reminder_paid(reminder_id)

        kinds = [e.event_type for e in audit_logger.events]
        assert kinds[-3:] == [
            AuditEventType.LEDGER_MUTATION,
            AuditEventType.SNAPSHOT_SAVED,
            AuditEventType.LINKED_EXPENSE_CREATED,
        ]
        linked = audit_logger.events[-1]
        assert linked.entity_id == service.snapshot.expenses[0].id
        assert linked.details["source_id"] == reminder_id

    def test_reminder_without_amount_links_nothing(self, service):
        service.add_reminder({"title": "Renew licence", "dueDate": "2024-06-20", "frequency": "One-time"})
        service.mark_reminder_paid(service.snapshot.reminders[0].id)
        assert service.snapshot.reminders[0].is_completed
        assert service.snapshot.expenses == ()

    def test_completed_reminder_is_rejected(self, service):
        service.add_reminder({**self.RENT, "frequency": "One-time"})
        reminder_id = service.snapshot.reminders[0].id
        service.mark_reminder_paid(reminder_id)
        with pytest.raises(LedgerValidationError):
            service.mark_reminder_paid(reminder_id)
        assert len(service.snapshot.expenses) == 1

    def test_past_due_date_is_rejected(self, service):
        with pytest.raises(LedgerValidationError):
            service.add_reminder({**self.RENT, "dueDate": "2024-06-01"})

    def test_groups(self, service):
        service.add_reminder({**self.RENT, "dueDate": TODAY.isoformat()})
        service.add_reminder(self.RENT)
        groups = service.reminder_groups()
        assert len(groups.due_today) == 1
        assert len(groups.upcoming) == 1
        assert groups.urgent_count == 1


class TestProfileAndSettings:
    """Tests for onboarding, app lock and custom labels."""

    def test_complete_onboarding(self, service):
        service.complete_onboarding({"name": "Asha", "dob": "1990-04-01"}, currency="USD")
        snapshot = service.snapshot
        assert snapshot.profile.name == "Asha"
        assert snapshot.settings.has_completed_onboarding
        assert snapshot.settings.currency == "USD"

    def test_app_lock_requires_dob_and_pin(self, service):
        with pytest.raises(LedgerValidationError) as exc_info:
            service.update_settings({"appLockEnabled": True, "appLockPin": "12"})
        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"app_lock_pin", "dob"}

    def test_app_lock_enabled(self, service):
        service.update_profile({"name": "Asha", "dob": "1990-04-01"})
        service.update_settings({"appLockEnabled": True, "appLockPin": "4321"})
        assert service.snapshot.settings.app_lock_enabled

    def test_custom_categories_are_deduplicated(self, service):
        service.add_custom_expense_category("Pets")
        service.add_custom_expense_category("Pets")
        assert service.snapshot.settings.custom_expense_categories == ("Pets",)
        assert "Pets" in service.categories(CategoryKind.EXPENSE)

    def test_reset(self, service):
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        service.reset_data()
        assert service.snapshot.incomes == ()
        assert not service.snapshot.settings.has_completed_onboarding


class TestBackupAndPersistence:
    """Tests for import/export and hydration across sessions."""

    def test_export_import_round_trip(self, service):
        service.add_loan(LOAN_PAYLOAD)
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        exported = service.export_data()
        before = service.snapshot

        service.reset_data()
        service.import_data(exported)
        assert service.snapshot == before

    def test_import_runs_no_side_effects(self, service):
        service.add_loan(LOAN_PAYLOAD, backfill=False)
        exported = service.export_data()
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")
        assert len(service.snapshot.expenses) == 1

        service.import_data(exported)
        assert service.snapshot.expenses == ()

        service.reset_data()
        service.add_loan(LOAN_PAYLOAD)
        backup = service.export_data()
        service.reset_data()
        service.import_data(backup)
        assert service.snapshot.expenses == ()
        assert len(service.snapshot.loans[0].payments) == 5

    def test_rejected_import_changes_nothing(self, service, storage, audit_logger):
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        before = service.snapshot
        saves = storage.save_count
        with pytest.raises(ImportRejectedError):
            service.import_data('{"profile": {}}')
        assert service.snapshot == before
        assert storage.save_count == saves
        assert audit_logger.events[-1].event_type == AuditEventType.IMPORT_REJECTED

    def test_partial_backup_keeps_existing_records(self, service, storage):
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        saves = storage.save_count
        with pytest.raises(ImportRejectedError):
            service.import_data({"profile": {"name": "X"}, "settings": {}, "notificationHistory": []})
        assert len(service.snapshot.incomes) == 1
        assert storage.save_count == saves

    def test_state_survives_restart(self, service, storage, settings):
        service.add_loan(LOAN_PAYLOAD)
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")

        reopened = create_ledger(
            settings=settings,
            storage=InMemorySnapshotStorage(storage.document),
            clock=lambda: TODAY,
            configure_logs=False,
        )
        assert reopened.snapshot == service.snapshot
        assert reopened.loan_status(_loan_id(reopened)).paid_months == 6

    def test_failed_save_is_retried_on_flush(self, service, storage):
        storage.fail_saves = True
        service.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        assert len(service.snapshot.incomes) == 1
        assert service.store.has_pending_write

        storage.fail_saves = False
        assert service.store.flush()
        assert storage.load() == service.snapshot

    def test_default_storage_is_json_file(self, tmp_path):
        settings = LedgerSettings(data_dir=tmp_path, snapshot_filename="ledger.json")
        ledger = create_ledger(settings=settings, clock=lambda: TODAY, configure_logs=False)
        ledger.add_income({"category": "Salary", "amount": "100", "date": "2024-06-01"})
        assert (tmp_path / "ledger.json").exists()


class TestDashboard:
    """Tests for the monthly totals."""

    def test_monthly_totals(self, service):
        service.add_income({"category": "Salary", "amount": "50000", "date": "2024-06-01"})
        service.add_income({"category": "Salary", "amount": "50000", "date": "2024-05-01"})
        service.add_expense({"category": "Grocery", "amount": "2000", "date": "2024-06-03"})
        service.add_loan(LOAN_PAYLOAD)
        service.toggle_loan_month_paid(_loan_id(service), "2024-06")

        totals = service.monthly_totals()
        assert totals.month_key == "2024-06"
        assert totals.income == Decimal("50000")
        assert totals.expenses == Decimal("3000")
        assert totals.monthly_emis == Decimal("1000")
        assert totals.remaining_balance == Decimal("47000")

        assert service.monthly_totals("2025-02").monthly_emis == Decimal("0")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
