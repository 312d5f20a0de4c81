"""
Tests for the engine tracing decorator.
"""

from datetime import date
from decimal import Decimal

from settlement_engines.tracer import compute_input_fingerprint, traced_engine
from settlement_kernel.domain.settlement import FlowType, merge_defaults


@traced_engine("test.double", "2.1", fingerprint_fields=("amount", "flow_type"))
def _double(amount: Decimal, flow_type: FlowType | None = None) -> Decimal:
    return amount * 2


class TestComputeInputFingerprint:
    """Fingerprints are deterministic over the selected fields."""

    def test_deterministic(self):
        args = {"amount": Decimal("10"), "as_of": date(2024, 1, 1)}

        first = compute_input_fingerprint(("amount", "as_of"), args)
        second = compute_input_fingerprint(("amount", "as_of"), dict(args))

        assert first == second
        assert len(first) == 16

    def test_unselected_fields_ignored(self):
        a = compute_input_fingerprint(("amount",), {"amount": 1, "other": 1})
        b = compute_input_fingerprint(("amount",), {"amount": 1, "other": 2})

        assert a == b

    def test_value_change_changes_fingerprint(self):
        a = compute_input_fingerprint(("amount",), {"amount": Decimal("1")})
        b = compute_input_fingerprint(("amount",), {"amount": Decimal("2")})

        assert a != b

    def test_dataclass_inputs(self):
        a = compute_input_fingerprint(("model",), {"model": merge_defaults({"flowType": "VALUTA"})})
        b = compute_input_fingerprint(("model",), {"model": merge_defaults({"flowType": "INVOITIX"})})

        assert a != b


class TestTracedEngine:
    """The decorator returns the result and emits one trace per call."""

    def test_result_unchanged(self):
        assert _double(Decimal("2.50")) == Decimal("5.00")

    def test_trace_record(self, captured_logs):
        _double(Decimal("1"), FlowType.INVOITIX)

        traces = [r for r in captured_logs() if r.get("engine_name") == "test.double"]
        assert len(traces) == 1
        assert traces[0]["trace_type"] == "SETTLEMENT_ENGINE_TRACE"
        assert traces[0]["engine_version"] == "2.1"
        assert traces[0]["function"] == "_double"

    def test_positional_and_keyword_calls_share_fingerprint(self, captured_logs):
        _double(Decimal("3"), FlowType.VALUTA)
        _double(amount=Decimal("3"), flow_type=FlowType.VALUTA)

        fingerprints = [
            r["input_fingerprint"] for r in captured_logs() if r.get("engine_name") == "test.double"
        ]
        assert len(fingerprints) == 2
        assert fingerprints[0] == fingerprints[1]
