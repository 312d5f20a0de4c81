"""
Tests for the clock and the database engine lifecycle.
"""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect

from settlement_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from settlement_kernel.domain.clock import DeterministicClock, SystemClock


class TestClock:

    def test_deterministic_clock_is_stable(self):
        clock = DeterministicClock(date(2024, 2, 28))

        assert clock.today() == date(2024, 2, 28)
        assert clock.today() == date(2024, 2, 28)

    def test_advance_days_crosses_leap_day(self):
        clock = DeterministicClock(date(2024, 2, 28))

        clock.advance_days(2)

        assert clock.today() == date(2024, 3, 1)

    def test_system_clock_uses_its_timezone(self):
        far_east = timezone(timedelta(hours=14))

        assert SystemClock(far_east).today() == datetime.now(far_east).date()
        assert SystemClock().today() == datetime.now(UTC).date()


class TestEngineLifecycle:

    def teardown_method(self):
        reset_engine()

    def test_uninitialised_engine_rejected(self):
        reset_engine()

        with pytest.raises(RuntimeError, match="init_engine_from_url"):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session_factory()

    def test_create_tables_registers_payment_tables(self):
        init_engine_from_url("sqlite://")
        create_tables()

        tables = set(inspect(get_engine()).get_table_names())

        assert {"payment_records", "payment_workflows"} <= tables

    def test_reinitialising_replaces_engine(self):
        first = init_engine_from_url("sqlite://")
        second = init_engine_from_url("sqlite://")

        assert get_engine() is second
        assert first is not second
