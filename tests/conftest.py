"""
Shared fixtures for the ledger tests.

Everything date-dependent runs against a fixed "today" so derived status
is reproducible.
"""

from datetime import date
from decimal import Decimal

import pytest

from local_ledger import create_ledger
from local_ledger.audit import AuditLogger
from local_ledger.config import LedgerSettings
from local_ledger.models import Loan
from local_ledger.services.storage import InMemorySnapshotStorage

TODAY = date(2024, 6, 15)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def storage():
    return InMemorySnapshotStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger(keep_events=True)


@pytest.fixture
def settings(tmp_path):
    return LedgerSettings(data_dir=tmp_path, currency="INR")


@pytest.fixture
def service(settings, storage, audit_logger):
    return create_ledger(
        settings=settings,
        storage=storage,
        clock=lambda: TODAY,
        audit_logger=audit_logger,
        configure_logs=False,
    )


@pytest.fixture
def loan():
    """Twelve monthly installments of 1,000 from Jan 2024, due on the 10th."""
    return Loan(
        name="Car loan",
        total_amount=Decimal("10000"),
        start_date=date(2024, 1, 10),
        emi_amount=Decimal("1000"),
        due_day=10,
        tenure_months=12,
    )
