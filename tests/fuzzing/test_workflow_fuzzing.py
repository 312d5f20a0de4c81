"""
Hypothesis-based fuzzing of the workflow model, codec and fee engine.

Boundaries fuzzed here:
- Closed-schema merge: arbitrary JSON-like input never raises and never
  produces an out-of-schema value
- Workflow record: encode then decode preserves a canonical workflow
- Legacy notes: arbitrary text always parses to structured or raw notes
- Fees: payout plus fee equals the base; payouts are never negative
- Flow lock: an unlocked workflow accepts any proposed selection
"""

from datetime import date
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from settlement_engines.fees import invoitix_fee, invoitix_payout, skonto_fee, valuta_payout
from settlement_engines.lock import ensure_flow_editable, is_flow_edit_locked
from settlement_kernel.domain.settlement import (
    DEFAULT_WORKFLOW,
    CountdownStart,
    FlowType,
    InvoiceDispatch,
    InvoitixDecision,
    InvoitixState,
    ValutaMode,
    ValutaState,
    WorkflowModel,
    merge_defaults,
    merge_workflow,
)
from settlement_kernel.domain.values import parse_non_negative_decimal, round_money
from settlement_modules.payments.codec import (
    RawNotes,
    StructuredNotes,
    decode_workflow,
    encode_workflow,
    parse_notes,
)

# =============================================================================
# Strategies
# =============================================================================

dates = st.one_of(st.none(), st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)))

json_values = st.recursive(
    st.one_of(
        st.none(),
        st.booleans(),
        st.integers(min_value=-10**6, max_value=10**6),
        st.floats(allow_nan=True, allow_infinity=True),
        st.text(max_size=20),
    ),
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(st.text(max_size=12), children, max_size=4),
    ),
    max_leaves=20,
)

# Keys the merge actually looks at, mixed with noise.
_INVOITIX_KEYS = ["sent_at", "sentAt", "decision", "payoutReference", "payout_confirmed_at"]
_VALUTA_KEYS = ["mode", "countdownStart", "countdown_days", "skontoPercent", "bankFeeAmount", "shippedAt"]

section_payloads = lambda keys: st.dictionaries(  # noqa: E731
    st.one_of(st.sampled_from(keys), st.text(max_size=8)),
    json_values,
    max_size=6,
)

workflow_payloads = st.fixed_dictionaries(
    {},
    optional={
        "flowType": st.one_of(st.sampled_from(["INVOITIX", "VALUTA", "CASH", ""]), json_values),
        "invoitix": st.one_of(section_payloads(_INVOITIX_KEYS), json_values),
        "valuta": st.one_of(section_payloads(_VALUTA_KEYS), json_values),
    },
)


@st.composite
def canonical_workflows(draw) -> WorkflowModel:
    """Workflows whose text fields are already in their stored form."""
    invoitix = InvoitixState(
        sent_at=draw(dates),
        decision=draw(st.sampled_from(list(InvoitixDecision))),
        rejected_at=draw(dates),
        approved_at=draw(dates),
        paid_out_at=draw(dates),
        payout_reference=draw(st.sampled_from(["", "REF-1", "INV 2024/7"])),
        projected_income_added_at=draw(dates),
        payout_confirmed_at=draw(dates),
    )
    valuta = ValutaState(
        mode=draw(st.sampled_from(list(ValutaMode))),
        countdown_start=draw(st.one_of(st.none(), st.sampled_from(list(CountdownStart)))),
        countdown_days=draw(st.sampled_from(["", "0", "14", "30", "60"])),
        skonto_percent=draw(st.sampled_from(["", "2", "2.5", "3.25"])),
        invoice_dispatch=draw(st.one_of(st.none(), st.sampled_from(list(InvoiceDispatch)))),
        invoice_sent_at=draw(dates),
        shipped_at=draw(dates),
        tracking_number=draw(st.sampled_from(["", "TRK-42"])),
        documents_arrived_at=draw(dates),
        payout_received_at=draw(dates),
        bank_fee_amount=draw(st.sampled_from(["", "7.5", "12", "0.35"])),
    )
    return WorkflowModel(
        flow_type=draw(st.one_of(st.none(), st.sampled_from(list(FlowType)))),
        invoitix=invoitix,
        valuta=valuta,
    )


money = st.decimals(min_value=Decimal("4.00"), max_value=Decimal("10000000"), places=2)


# =============================================================================
# Merge
# =============================================================================


class TestMergeFuzzing:
    """The closed-schema merge accepts anything and stays in schema."""

    @given(payload=workflow_payloads)
    @settings(
        max_examples=200,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_arbitrary_payload_stays_in_schema(self, payload):
        model = merge_defaults(payload)

        assert isinstance(model, WorkflowModel)
        assert model.flow_type is None or isinstance(model.flow_type, FlowType)
        assert isinstance(model.invoitix.decision, InvoitixDecision)
        assert isinstance(model.valuta.mode, ValutaMode)
        assert isinstance(model.invoitix.payout_reference, str)
        for text in (
            model.valuta.countdown_days,
            model.valuta.skonto_percent,
            model.valuta.bank_fee_amount,
        ):
            assert text == "" or parse_non_negative_decimal(text) is not None

    @given(payload=json_values)
    def test_non_mapping_payload_is_default(self, payload):
        if not isinstance(payload, dict):
            assert merge_defaults(payload) == DEFAULT_WORKFLOW

    @given(model=canonical_workflows())
    def test_merge_of_itself_is_identity(self, model):
        assert merge_workflow(model, model) == model
        assert merge_defaults(model.to_dict()) == model

    @given(model=canonical_workflows(), payload=workflow_payloads)
    def test_merge_is_idempotent(self, model, payload):
        once = merge_workflow(model, payload)

        assert merge_workflow(once, payload) == once


# =============================================================================
# Codec
# =============================================================================


class TestCodecFuzzing:

    @given(model=canonical_workflows(), note=st.text(max_size=40))
    def test_record_preserves_workflow(self, model, note):
        record = encode_workflow(model, note)

        assert decode_workflow(record) == model
        assert record.manual_note == note

    @given(text=st.one_of(st.none(), st.text(max_size=200)))
    def test_notes_always_parse(self, text):
        parsed = parse_notes(text)

        assert isinstance(parsed, (StructuredNotes, RawNotes))
        if isinstance(parsed, RawNotes):
            assert parsed.text == (text or "")


# =============================================================================
# Fees
# =============================================================================


class TestFeeFuzzing:

    @given(base=money)
    def test_invoitix_payout_plus_fee_is_base(self, base):
        assert invoitix_payout(base) + invoitix_fee(base) == round_money(base)

    @given(
        base=st.decimals(min_value=Decimal("-1000"), max_value=Decimal("1000000"), places=2),
        percent=st.decimals(min_value=Decimal("0"), max_value=Decimal("200"), places=2),
        bank_fee=st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2),
    )
    def test_valuta_payout_bounded(self, base, percent, bank_fee):
        discount = skonto_fee(base, ValutaMode.SKONTO, percent)

        payout = valuta_payout(base, discount, bank_fee)

        assert payout >= Decimal("0")
        assert payout <= max(round_money(base), Decimal("0"))

    @given(
        base=st.one_of(st.decimals(allow_nan=False, allow_infinity=False), st.text(max_size=12)),
        bank_fee=st.one_of(st.decimals(allow_nan=False, allow_infinity=False), st.text(max_size=12)),
    )
    @settings(max_examples=200, deadline=None)
    def test_valuta_payout_total_for_any_input(self, base, bank_fee):
        payout = valuta_payout(base, Decimal("0"), bank_fee)

        assert payout >= Decimal("0")
        assert payout == round_money(payout)


# =============================================================================
# Flow lock
# =============================================================================


class TestLockFuzzing:

    @given(current=canonical_workflows(), proposed=canonical_workflows())
    def test_unlocked_accepts_any_selection(self, current, proposed):
        if not is_flow_edit_locked(current):
            ensure_flow_editable(current, proposed)
