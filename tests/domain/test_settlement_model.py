"""
Tests for the settlement workflow model.

Covers:
- Closed-schema merge over defaults (snake_case and camelCase input)
- Invalid and unknown input falling back to the base value
- Progress predicates of both branches
- LoadSnapshot construction from raw load attributes
"""

from datetime import date
from decimal import Decimal

from settlement_kernel.domain.settlement import (
    DEFAULT_WORKFLOW,
    CountdownStart,
    FlowType,
    InvoiceDispatch,
    InvoitixDecision,
    LoadSnapshot,
    ValutaMode,
    WorkflowModel,
    has_invoitix_started,
    has_valuta_started,
    merge_defaults,
    merge_workflow,
)


class TestMergeDefaults:
    """Tests for merge_defaults."""

    def test_none_yields_default_workflow(self):
        """No input gives the all-default workflow."""
        assert merge_defaults(None) == DEFAULT_WORKFLOW
        assert merge_defaults({}) == DEFAULT_WORKFLOW

    def test_default_values(self):
        model = merge_defaults()

        assert model.flow_type is None
        assert model.invoitix.decision is InvoitixDecision.PENDING
        assert model.invoitix.payout_reference == ""
        assert model.valuta.mode is ValutaMode.VALUTA
        assert model.valuta.countdown_start is None
        assert model.valuta.countdown_days == ""
        assert model.valuta.bank_fee_amount == ""

    def test_camel_case_payload(self):
        """Wire payloads with camelCase keys are accepted."""
        model = merge_defaults({
            "flowType": "VALUTA",
            "valuta": {
                "mode": "SKONTO",
                "countdownStart": "ORIGINALS_RECEIVED",
                "countdownDays": "30",
                "skontoPercent": "2",
                "shippedAt": "2024-01-05",
                "trackingNumber": "TRK-1",
            },
        })

        assert model.flow_type is FlowType.VALUTA
        assert model.valuta.mode is ValutaMode.SKONTO
        assert model.valuta.countdown_start is CountdownStart.ORIGINALS_RECEIVED
        assert model.valuta.countdown_days == "30"
        assert model.valuta.skonto_percent == "2"
        assert model.valuta.shipped_at == date(2024, 1, 5)
        assert model.valuta.tracking_number == "TRK-1"

    def test_snake_case_payload(self):
        model = merge_defaults({
            "flow_type": FlowType.INVOITIX,
            "invoitix": {"sent_at": date(2024, 1, 3), "payout_reference": "REF-9"},
        })

        assert model.is_invoitix
        assert model.invoitix.sent_at == date(2024, 1, 3)
        assert model.invoitix.payout_reference == "REF-9"

    def test_timestamp_dates_lose_time_of_day(self):
        model = merge_defaults({"invoitix": {"sentAt": "2024-01-03T15:30:00.000Z"}})

        assert model.invoitix.sent_at == date(2024, 1, 3)

    def test_invalid_values_fall_back_to_defaults(self):
        """Unparsable enums, dates and numbers never raise."""
        model = merge_defaults({
            "flowType": "CASH",
            "invoitix": {"sentAt": "not-a-date", "decision": "MAYBE"},
            "valuta": {"mode": 7, "countdownDays": "-5", "skontoPercent": "abc"},
        })

        assert model.flow_type is None
        assert model.invoitix.sent_at is None
        assert model.invoitix.decision is InvoitixDecision.PENDING
        assert model.valuta.mode is ValutaMode.VALUTA
        assert model.valuta.countdown_days == ""
        assert model.valuta.skonto_percent == ""

    def test_unknown_keys_ignored(self):
        model = merge_defaults({"extra": 1, "valuta": {"colour": "red"}})

        assert model == DEFAULT_WORKFLOW

    def test_non_mapping_sections_ignored(self):
        model = merge_defaults({"invoitix": "sent", "valuta": ["x"]})

        assert model == DEFAULT_WORKFLOW

    def test_numbers_become_text(self):
        model = merge_defaults({"valuta": {"countdownDays": 14, "bankFeeAmount": Decimal("2.50")}})

        assert model.valuta.countdown_days == "14"
        assert model.valuta.bank_fee_amount == "2.50"

    def test_idempotent(self):
        partial = {"flowType": "VALUTA", "valuta": {"countdownDays": " 30 "}}
        once = merge_defaults(partial)

        assert merge_defaults(once) == once


class TestMergeWorkflow:
    """Tests for merging a patch over an existing workflow."""

    def setup_method(self):
        self.base = merge_defaults({
            "flowType": "VALUTA",
            "valuta": {
                "countdownStart": "EMAIL_COPY_INVOICE",
                "countdownDays": "30",
                "invoiceSentAt": "2024-01-05",
            },
        })

    def test_patch_keeps_untouched_fields(self):
        merged = merge_workflow(self.base, {"valuta": {"payoutReceivedAt": "2024-02-04"}})

        assert merged.valuta.payout_received_at == date(2024, 2, 4)
        assert merged.valuta.invoice_sent_at == date(2024, 1, 5)
        assert merged.valuta.countdown_days == "30"

    def test_null_clears_nullable_field(self):
        merged = merge_workflow(self.base, {"valuta": {"invoiceSentAt": None}})

        assert merged.valuta.invoice_sent_at is None

    def test_null_clears_numeric_text(self):
        merged = merge_workflow(self.base, {"valuta": {"countdownDays": None}})

        assert merged.valuta.countdown_days == ""

    def test_null_keeps_non_nullable_enum(self):
        merged = merge_workflow(self.base, {"valuta": {"mode": None}})

        assert merged.valuta.mode is ValutaMode.VALUTA

    def test_model_as_patch(self):
        other = WorkflowModel(flow_type=FlowType.INVOITIX)

        assert merge_workflow(self.base, other) == other

    def test_non_mapping_patch_returns_base(self):
        assert merge_workflow(self.base, "garbage") is self.base


class TestProgressPredicates:
    """Tests for has_invoitix_started / has_valuta_started."""

    def test_default_not_started(self):
        assert not has_invoitix_started(DEFAULT_WORKFLOW)
        assert not has_valuta_started(DEFAULT_WORKFLOW)

    def test_invoitix_started_on_sent(self):
        model = merge_defaults({"invoitix": {"sentAt": "2024-01-03"}})

        assert has_invoitix_started(model)

    def test_invoitix_decision_alone_is_not_progress(self):
        model = merge_defaults({"invoitix": {"decision": "APPROVED"}})

        assert not has_invoitix_started(model)

    def test_valuta_started_on_tracking_number(self):
        model = merge_defaults({"valuta": {"trackingNumber": "TRK"}})

        assert has_valuta_started(model)

    def test_valuta_blank_tracking_number_is_not_progress(self):
        model = merge_defaults({"valuta": {"trackingNumber": "   "}})

        assert not has_valuta_started(model)

    def test_valuta_terms_are_not_progress(self):
        """Countdown setup and dispatch choice are configuration, not progress."""
        model = merge_defaults({
            "valuta": {
                "countdownDays": "30",
                "skontoPercent": "2",
                "invoiceDispatch": InvoiceDispatch.EMAIL_WITH_CMR,
            },
        })

        assert not has_valuta_started(model)


class TestLoadSnapshot:
    """Tests for LoadSnapshot.of."""

    def test_agreed_price_wins(self):
        load = LoadSnapshot.of("L1", status="DELIVERED", agreed_price=900, published_price=1000)

        assert load.base_amount == Decimal("900")
        assert load.is_completed

    def test_published_price_fallback(self):
        load = LoadSnapshot.of("L1", status="IN_TRANSIT", published_price="1000.50")

        assert load.base_amount == Decimal("1000.50")
        assert not load.is_completed

    def test_missing_prices_give_zero(self):
        load = LoadSnapshot.of("L1", status="DELIVERED")

        assert load.base_amount == Decimal("0")

    def test_delivery_dates_normalized(self):
        load = LoadSnapshot.of(
            "L1",
            status="DELIVERED",
            delivery_date_from="2024-01-02T08:00:00Z",
            delivery_date_to="2024-01-04",
        )

        assert load.delivery_date_from == date(2024, 1, 2)
        assert load.delivery_date_to == date(2024, 1, 4)

    def test_legacy_flags(self):
        load = LoadSnapshot.of("L1", status="DELIVERED", invoitix=1, valuta_check=None)

        assert load.legacy_invoitix_flag is True
        assert load.legacy_valuta_flag is False
