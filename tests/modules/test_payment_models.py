"""
Tests for the payment value objects and their camelCase wire mapping.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from settlement_kernel.domain.settlement import (
    CountdownStart,
    FlowType,
    InvoiceDispatch,
    PaymentStatus,
    ValutaMode,
)
from settlement_modules.payments.models import PaymentRecord, PaymentWorkflowRecord


class TestWorkflowRecordPayload:
    """Tests for PaymentWorkflowRecord.to_payload / from_payload."""

    def test_to_payload_omits_unset_fields(self):
        payload = PaymentWorkflowRecord(flow_type=FlowType.INVOITIX).to_payload()

        assert payload == {"flowType": "INVOITIX"}

    def test_to_payload_wire_types(self):
        record = PaymentWorkflowRecord(
            manual_note="n",
            flow_type=FlowType.VALUTA,
            valuta_mode=ValutaMode.SKONTO,
            valuta_countdown_start=CountdownStart.ORIGINALS_RECEIVED,
            valuta_countdown_days=30,
            valuta_skonto_percent=Decimal("2.50"),
            valuta_invoice_dispatch=InvoiceDispatch.WAIT_AND_SHIP_ORIGINALS,
            valuta_shipped_at=date(2024, 1, 3),
            valuta_projected_payout_date=date(2024, 2, 5),
        )

        payload = record.to_payload()

        assert payload["manualNote"] == "n"
        assert payload["valutaMode"] == "SKONTO"
        assert payload["valutaCountdownStart"] == "ORIGINALS_RECEIVED"
        assert payload["valutaCountdownDays"] == 30
        assert payload["valutaSkontoPercent"] == 2.5
        assert payload["valutaInvoiceDispatch"] == "WAIT_AND_SHIP_ORIGINALS"
        assert payload["valutaShippedAt"] == "2024-01-03"
        assert payload["valutaProjectedPayoutDate"] == "2024-02-05"

    def test_from_payload(self):
        record = PaymentWorkflowRecord.from_payload({
            "flowType": "INVOITIX",
            "invoitixSentAt": "2024-01-03T00:00:00.000Z",
            "invoitixDecision": "APPROVED",
            "invoitixPayoutReference": "REF",
            "valutaBankFeeAmount": 4.5,
            "unknownField": True,
        })

        assert record.flow_type is FlowType.INVOITIX
        assert record.invoitix_sent_at == date(2024, 1, 3)
        assert record.invoitix_decision.value == "APPROVED"
        assert record.invoitix_payout_reference == "REF"
        assert record.valuta_bank_fee_amount == Decimal("4.50")
        assert record.has_bank_fee

    def test_from_payload_is_lenient(self):
        """Malformed fields become None instead of failing the record."""
        record = PaymentWorkflowRecord.from_payload({
            "flowType": "CASH",
            "invoitixSentAt": "yesterday",
            "valutaCountdownDays": "-3",
            "valutaTrackingNumber": 12345,
        })

        assert record == PaymentWorkflowRecord()

    def test_payload_round_trip(self):
        record = PaymentWorkflowRecord(
            flow_type=FlowType.VALUTA,
            valuta_countdown_days=14,
            valuta_bank_fee_amount=Decimal("12.30"),
            valuta_payout_received_at=date(2024, 2, 1),
        )

        assert PaymentWorkflowRecord.from_payload(record.to_payload()) == record


class TestPaymentRecord:

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            PaymentRecord(
                payment_id=uuid4(),
                load_id="load-1",
                broker_id="broker-1",
                status=PaymentStatus.PENDING,
                amount=Decimal("-1"),
            )

    def test_defaults(self):
        record = PaymentRecord(
            payment_id=uuid4(),
            load_id="load-1",
            broker_id="broker-1",
            status=PaymentStatus.PENDING,
            amount=Decimal("10"),
        )

        assert record.currency == "EUR"
        assert record.workflow is None
        assert record.paid_date is None
