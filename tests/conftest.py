"""
Pytest fixtures for the fee/fine test suite.

Provides:
- Structured logging configuration and log capture
- Builders for accounts and ledger actions
- In-memory lookup ports and services wired over them
- An in-memory SQLite session for selector and model tests
"""

import json
import logging
from datetime import UTC, datetime
from io import StringIO
from uuid import uuid4

import pytest

from feefine_config import ReportSettings
from feefine_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from feefine_kernel.domain.ledger import Account, FeeFineAction
from feefine_kernel.domain.sources import InstanceRecord, ItemRecord, PatronRecord
from feefine_kernel.domain.values import Money
from feefine_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from feefine_kernel.selectors.memory_selector import (
    FixedTimezone,
    InMemoryInventory,
    InMemoryLedger,
    InMemoryPatronDirectory,
)
from feefine_services.refund_check_service import RefundCheckService
from feefine_services.refund_report_service import RefundReportService

TENANT_TZ = "America/New_York"
START_DATE = "2020-01-01"
END_DATE = "2020-01-15"

PATRON_ID = "3f5c2d3a-91a4-4c56-9a0e-2f4b3c1d7e10"
ITEM_ID = "b3c1f1f0-4a8e-4a1d-8c4e-6f0e1a2b3c4d"
INSTANCE_ID = "0c2e7f59-1f4e-4c9f-a3a4-5d2c7b9e8f01"

PATRON = PatronRecord(
    last_name="Smith",
    first_name="Jane",
    middle_name="Q",
    barcode="patron-barcode-1",
    group="undergrad",
)
ITEM = ItemRecord(barcode="item-barcode-1", instance_id=INSTANCE_ID)
INSTANCE = InstanceRecord(title="A Tale of Two Ledgers")

PAYMENT_METHOD = "payment-method"
REFUND_REASON = "refund-reason"
TRANSFER_ACCOUNT = "Bursar"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture feefine logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, report_service):
            report_service.generate_refund_report(...)
            logs = captured_logs()
            assert any(r["message"] == "refund_report_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("feefine")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Builders
# =============================================================================


def at(text: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS`` as a UTC instant."""
    return datetime.strptime(text, "%Y-%m-%d %H:%M:%S").replace(tzinfo=UTC)


def make_account(
    amount: str = "10.00",
    fee_fine_type: str = "ff-type",
    item_id: str | None = None,
    created_at: str = "2020-01-01 00:30:00",
    patron_id: str = PATRON_ID,
    account_id: str | None = None,
) -> Account:
    return Account(
        id=account_id or str(uuid4()),
        patron_id=patron_id,
        fee_fine_type=fee_fine_type,
        amount=Money.of(amount),
        created_at=at(created_at),
        item_id=item_id,
    )


def make_action(
    account: Account,
    when: str,
    type_action: str,
    amount: str,
    balance: str,
    method: str = "",
    staff_info: str = "",
    patron_info: str = "",
    transaction_info: str = "",
    action_id: str | None = None,
) -> FeeFineAction:
    return FeeFineAction(
        id=action_id or str(uuid4()),
        account_id=account.id,
        patron_id=account.patron_id,
        type_action=type_action,
        amount=Money.of(amount),
        balance=Money.of(balance),
        timestamp=at(when),
        method=method,
        staff_info=staff_info,
        patron_info=patron_info,
        transaction_info=transaction_info,
    )


# =============================================================================
# Port and service fixtures
# =============================================================================


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def patrons() -> InMemoryPatronDirectory:
    return InMemoryPatronDirectory({PATRON_ID: PATRON})


@pytest.fixture
def inventory() -> InMemoryInventory:
    return InMemoryInventory(items={ITEM_ID: ITEM}, instances={INSTANCE_ID: INSTANCE})


@pytest.fixture
def report_service(ledger, patrons, inventory) -> RefundReportService:
    """Report service in the tenant timezone with concurrent replay enabled."""
    return RefundReportService(
        ledger=ledger,
        patrons=patrons,
        inventory=inventory,
        timezone_source=FixedTimezone(TENANT_TZ),
        settings=ReportSettings(max_workers=4),
    )


@pytest.fixture
def check_service(ledger) -> RefundCheckService:
    return RefundCheckService(ledger=ledger)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session():
    """Session over a fresh in-memory SQLite database."""
    init_engine_from_url("sqlite://")
    create_tables()
    db_session = get_session()
    yield db_session
    db_session.close()
    drop_tables()
    reset_engine()
