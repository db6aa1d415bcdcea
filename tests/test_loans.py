"""
Tests for the loan amortization engine.

Today is fixed at 2024-06-15 (see conftest.py).
"""

import pytest
from datetime import date
from decimal import Decimal

from local_ledger.engine.loans import (
    backfill_payments,
    calculate_end_date,
    loan_status,
    loan_timeline,
    mark_month_paid,
    running_in_month,
    schedule_dates,
    toggle_month_payments,
)
from local_ledger.models import Loan, LoanPayment, TimelineStatus, revise


def _ids():
    counter = iter(range(1000))
    return lambda: f"p{next(counter)}"


class TestLoanTimeline:
    """Tests for schedule construction."""

    def test_one_month_per_installment(self, loan):
        dates = schedule_dates(loan)
        assert len(dates) == 12
        assert dates[0] == date(2024, 1, 10)
        assert dates[-1] == date(2024, 12, 10)

    def test_timeline_status_relative_to_today(self, loan, today):
        timeline = loan_timeline(loan, today)
        assert [m.status for m in timeline[:5]] == [TimelineStatus.PAST] * 5
        assert timeline[5].month_key == "2024-06"
        assert timeline[5].status == TimelineStatus.CURRENT
        assert all(m.status == TimelineStatus.FUTURE for m in timeline[6:])

    def test_due_day_clamps_to_month_end(self):
        loan = Loan(
            name="Home",
            total_amount=Decimal("3000"),
            start_date=date(2024, 1, 31),
            emi_amount=Decimal("1000"),
            due_day=31,
            tenure_months=3,
        )
        assert schedule_dates(loan) == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_end_date(self):
        assert calculate_end_date(date(2024, 1, 31), 13) == date(2025, 2, 28)
        assert calculate_end_date(date(2024, 1, 10), 0) == date(2024, 1, 10)

    def test_running_in_month(self, loan):
        assert running_in_month(loan, "2024-12")
        assert not running_in_month(loan, "2025-01")
        assert not running_in_month(loan, "2023-12")


class TestLoanStatus:
    """Tests for progress derived from payments."""

    def test_no_payments(self, loan, today):
        status = loan_status(loan, today)
        assert status.paid_months == 0
        assert status.total_payable == Decimal("12000")
        assert status.remaining_balance == Decimal("12000")
        assert status.remaining_emis == 12
        assert status.progress == 0.0
        assert not status.is_completed
        assert not status.is_current_month_paid

    def test_progress_counts_paid_months(self, loan, today):
        loan = backfill_payments(loan, today, make_id=_ids())
        status = loan_status(loan, today)
        assert status.paid_months == 5
        assert status.total_paid == Decimal("5000")
        assert status.remaining_balance == Decimal("7000")
        assert status.progress == pytest.approx(5000 / 12000 * 100)

    def test_two_payments_in_one_month_count_once(self, loan, today):
        loan = revise(loan, payments=[
            LoanPayment(amount=Decimal("500"), date=date(2024, 3, 1)),
            LoanPayment(amount=Decimal("500"), date=date(2024, 3, 20)),
        ])
        assert loan_status(loan, today).paid_months == 1

    def test_payments_outside_tenure_are_ignored(self, loan, today):
        loan = revise(loan, payments=[
            LoanPayment(amount=Decimal("1000"), date=date(2023, 12, 10)),
            LoanPayment(amount=Decimal("1000"), date=date(2025, 1, 10)),
        ])
        status = loan_status(loan, today)
        assert status.paid_months == 0
        assert status.progress == 0.0

    def test_fully_paid_loan_is_completed(self, loan, today):
        for d in schedule_dates(loan):
            loan = toggle_month_payments(loan, f"{d.year:04d}-{d.month:02d}")
        status = loan_status(loan, today)
        assert status.is_completed
        assert status.progress == 100.0
        assert status.remaining_balance == Decimal("0")
        assert status.remaining_emis == 0
        assert status.remaining_balance + status.total_paid == status.total_payable

    def test_zero_tenure_has_zero_progress(self, today):
        loan = Loan(
            name="Odd",
            total_amount=Decimal("1000"),
            start_date=date(2024, 1, 1),
            emi_amount=Decimal("100"),
            tenure_months=0,
        )
        status = loan_status(loan, today)
        assert status.progress == 0.0
        assert status.timeline == []
        assert status.is_completed

    def test_past_tenure_flag(self, loan):
        assert loan_status(loan, date(2025, 2, 1)).is_past_tenure
        assert not loan_status(loan, date(2024, 12, 31)).is_past_tenure


class TestToggleMonth:
    """Tests for flipping a month between paid and unpaid."""

    def test_marks_month_paid_at_due_date(self, loan):
        toggled = toggle_month_payments(loan, "2024-03", make_id=lambda: "p1")
        assert toggled.payments == (LoanPayment(id="p1", amount=Decimal("1000"), date=date(2024, 3, 10)),)

    def test_second_toggle_removes_every_payment_in_month(self, loan):
        loan = revise(loan, payments=[
            LoanPayment(amount=Decimal("500"), date=date(2024, 3, 1)),
            LoanPayment(amount=Decimal("500"), date=date(2024, 3, 20)),
            LoanPayment(amount=Decimal("1000"), date=date(2024, 4, 10)),
        ])
        toggled = toggle_month_payments(loan, "2024-03")
        assert [p.date for p in toggled.payments] == [date(2024, 4, 10)]

    def test_current_month_paid_flag(self, loan, today):
        toggled = toggle_month_payments(loan, "2024-06")
        assert loan_status(toggled, today).is_current_month_paid

    def test_paid_unpaid_paid_restores_status(self, loan, today):
        paid = toggle_month_payments(loan, "2024-03")
        restored = toggle_month_payments(toggle_month_payments(paid, "2024-03"), "2024-03")
        before, after = loan_status(paid, today), loan_status(restored, today)
        assert after.total_paid == before.total_paid
        assert after.timeline[2].is_paid and before.timeline[2].is_paid

    def test_mark_paid_leaves_paid_month_alone(self, loan):
        paid = mark_month_paid(loan, "2024-03", make_id=lambda: "p1")
        assert [p.id for p in paid.payments] == ["p1"]
        assert mark_month_paid(paid, "2024-03") is paid
        with pytest.raises(ValueError):
            mark_month_paid(loan, "2025-01")

    def test_rejects_month_outside_tenure(self, loan):
        with pytest.raises(ValueError):
            toggle_month_payments(loan, "2025-01")

    def test_does_not_mutate_input(self, loan):
        toggle_month_payments(loan, "2024-03")
        assert loan.payments == ()


class TestBackfill:
    """Tests for loans entered part-way through their tenure."""

    def test_pays_months_before_current(self, loan, today):
        filled = backfill_payments(loan, today)
        assert [p.date.month for p in filled.payments] == [1, 2, 3, 4, 5]
        assert all(p.amount == Decimal("1000") for p in filled.payments)

    def test_leaves_already_paid_months(self, loan, today):
        loan = toggle_month_payments(loan, "2024-02", make_id=lambda: "existing")
        filled = backfill_payments(loan, today)
        assert len(filled.payments) == 5
        assert [p.id for p in filled.payments].count("existing") == 1

    def test_future_loan_unchanged(self, loan):
        assert backfill_payments(loan, date(2023, 12, 1)) is loan


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
