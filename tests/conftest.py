"""
Pytest fixtures for the settlement test suite.

Provides:
- Structured logging configured once per session, plus ``captured_logs``
- A ``DeterministicClock`` pinned to a known date
- Load snapshot builders
- In-memory and SQLite-backed payment stores
- A ``PaymentSettlementService`` wired to the in-memory store
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from settlement_config import SettlementConfig
from settlement_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from settlement_kernel.domain.clock import DeterministicClock
from settlement_kernel.domain.settlement import LoadSnapshot
from settlement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from settlement_modules.payments.service import PaymentSettlementService
from settlement_modules.payments.store import InMemoryPaymentStore, SqlAlchemyPaymentStore

TEST_TODAY = date(2024, 1, 10)
TEST_BROKER_ID = "broker-001"


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
    Capture settlement_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service, load):
            service.select_flow(load, FlowType.INVOITIX)
            logs = captured_logs()
            assert any(r["message"] == "payment_details_saved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("settlement_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Time and configuration
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    clock = DeterministicClock()
    clock.set_date(TEST_TODAY)
    return clock


@pytest.fixture
def settlement_config() -> SettlementConfig:
    return SettlementConfig()


# =============================================================================
# Loads
# =============================================================================


def make_load(
    load_id: str = "load-001",
    *,
    status: str = "DELIVERED",
    agreed_price=Decimal("1000.00"),
    published_price=None,
    invoitix: bool = False,
    valuta_check: bool = False,
    broker_id: str | None = TEST_BROKER_ID,
    delivery_date_from=date(2024, 1, 2),
    delivery_date_to=date(2024, 1, 4),
) -> LoadSnapshot:
    """Build a load snapshot; delivered for 1000.00 EUR unless overridden."""
    return LoadSnapshot.of(
        load_id,
        status=status,
        agreed_price=agreed_price,
        published_price=published_price,
        invoitix=invoitix,
        valuta_check=valuta_check,
        broker_id=broker_id,
        delivery_date_from=delivery_date_from,
        delivery_date_to=delivery_date_to,
    )


@pytest.fixture
def load() -> LoadSnapshot:
    return make_load()


@pytest.fixture
def pending_load() -> LoadSnapshot:
    """A load that is still in transit."""
    return make_load("load-002", status="IN_TRANSIT")


# =============================================================================
# Stores and service
# =============================================================================


class RecordingLoadFlagWriter:
    """Records every legacy flag write instead of touching a load."""

    def __init__(self):
        self.calls: list[tuple[str, bool, bool]] = []

    def set_flow_flags(self, load_id: str, *, invoitix: bool, valuta_check: bool) -> None:
        self.calls.append((load_id, invoitix, valuta_check))


@pytest.fixture
def payment_store() -> InMemoryPaymentStore:
    return InMemoryPaymentStore()


@pytest.fixture
def load_flags() -> RecordingLoadFlagWriter:
    return RecordingLoadFlagWriter()


@pytest.fixture
def service(payment_store, clock, settlement_config, load_flags) -> PaymentSettlementService:
    return PaymentSettlementService(
        payment_store,
        clock=clock,
        config=settlement_config,
        load_flags=load_flags,
    )


@pytest.fixture
def sqlite_session_factory():
    """Fresh in-memory SQLite database with all settlement tables."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_payment_store(sqlite_session_factory) -> SqlAlchemyPaymentStore:
    return SqlAlchemyPaymentStore(sqlite_session_factory)


def approve_all(prompt: str) -> bool:
    return True


def decline_all(prompt: str) -> bool:
    return False
