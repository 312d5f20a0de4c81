"""
Payment ORM Models (``settlement_modules.payments.orm``).

Responsibility
--------------
SQLAlchemy persistence models for Payment Records and their one-to-one
workflow sub-record.  Maps the frozen dataclasses of ``models.py`` to
database tables.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``settlement_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``settlement_kernel``
(except ``db.engine.create_tables``, which imports it for table discovery).
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from settlement_kernel.db.base import TrackedBase
from settlement_kernel.domain.settlement import (
    CountdownStart,
    FlowType,
    InvoiceDispatch,
    InvoitixDecision,
    PaymentStatus,
    ValutaMode,
)
from settlement_kernel.domain.values import round_money
from settlement_kernel.logging_config import get_logger

logger = get_logger("modules.payments.orm")


def _enum_value(value) -> str | None:
    return value.value if value is not None else None


def _stored_enum(enum_cls, value, default=None):
    """Stored enum text back to its member; unknown or empty text gives ``default``."""
    if not value:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(
            "unknown_stored_enum_value",
            extra={"enum": enum_cls.__name__, "stored_value": value},
        )
        return default


# ---------------------------------------------------------------------------
# 1. PaymentRecordModel
# ---------------------------------------------------------------------------


class PaymentRecordModel(TrackedBase):
    """
    ORM model for Payment Records.

    Maps to the ``PaymentRecord`` frozen dataclass.  The structured
    workflow lives in ``payment_workflows`` via the ``workflow``
    relationship; older rows keep a workflow payload in ``notes``.

    Guarantees:
        - Monetary fields use Decimal (Numeric(14, 2) via type_annotation_map).
        - status stored as string enum value.
    """

    __tablename__ = "payment_records"

    __table_args__ = (
        Index("idx_payment_records_load_id", "load_id"),
        Index("idx_payment_records_status", "status"),
    )

    load_id: Mapped[str] = mapped_column(String(64), nullable=False)
    broker_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    issue_date: Mapped[date | None] = mapped_column(nullable=True)
    due_date: Mapped[date | None] = mapped_column(nullable=True)
    paid_date: Mapped[date | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    workflow: Mapped[Optional["PaymentWorkflowModel"]] = relationship(
        back_populates="payment_record",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from settlement_modules.payments.models import PaymentRecord

        return PaymentRecord(
            payment_id=self.id,
            load_id=self.load_id,
            broker_id=self.broker_id,
            status=_stored_enum(PaymentStatus, self.status, PaymentStatus.PENDING),
            amount=round_money(self.amount),
            currency=self.currency,
            issue_date=self.issue_date,
            due_date=self.due_date,
            paid_date=self.paid_date,
            notes=self.notes,
            workflow=self.workflow.to_dto() if self.workflow is not None else None,
        )

    @classmethod
    def from_dto(cls, dto, payment_id: UUID) -> "PaymentRecordModel":
        """Create ORM model from a ``NewPayment``."""
        model = cls(
            id=payment_id,
            load_id=dto.load_id,
            broker_id=dto.broker_id,
            status=dto.status.value,
            amount=dto.amount,
            currency=dto.currency,
            issue_date=dto.issue_date,
            due_date=dto.due_date,
            notes=dto.notes,
        )
        if dto.workflow is not None:
            model.workflow = PaymentWorkflowModel.from_dto(dto.workflow)
        return model

    def __repr__(self) -> str:
        return f"<PaymentRecordModel {self.load_id}: {self.status} {self.amount}>"


# ---------------------------------------------------------------------------
# 2. PaymentWorkflowModel
# ---------------------------------------------------------------------------


class PaymentWorkflowModel(TrackedBase):
    """
    ORM model for the workflow sub-record of a Payment Record.

    Maps to the ``PaymentWorkflowRecord`` frozen dataclass.

    Guarantees:
        - payment_record_id FK to payment_records.id, unique (one-to-one).
        - Enum fields stored as string values; numbers already parsed.
    """

    __tablename__ = "payment_workflows"

    __table_args__ = (
        UniqueConstraint("payment_record_id", name="uq_payment_workflows_payment_record_id"),
    )

    payment_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("payment_records.id", ondelete="CASCADE"), nullable=False
    )
    manual_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    flow_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    invoitix_sent_at: Mapped[date | None] = mapped_column(nullable=True)
    invoitix_decision: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvoitixDecision.PENDING.value
    )
    invoitix_rejected_at: Mapped[date | None] = mapped_column(nullable=True)
    invoitix_resubmitted_at: Mapped[date | None] = mapped_column(nullable=True)
    invoitix_approved_at: Mapped[date | None] = mapped_column(nullable=True)
    invoitix_paid_out_at: Mapped[date | None] = mapped_column(nullable=True)
    invoitix_payout_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    invoitix_projected_income_added_at: Mapped[date | None] = mapped_column(nullable=True)
    invoitix_payout_confirmed_at: Mapped[date | None] = mapped_column(nullable=True)

    valuta_mode: Mapped[str] = mapped_column(String(20), nullable=False, default=ValutaMode.VALUTA.value)
    valuta_countdown_start: Mapped[str | None] = mapped_column(String(30), nullable=True)
    valuta_countdown_days: Mapped[int | None] = mapped_column(nullable=True)
    valuta_skonto_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    valuta_sent_to_accountant_at: Mapped[date | None] = mapped_column(nullable=True)
    valuta_invoice_dispatch: Mapped[str | None] = mapped_column(String(30), nullable=True)
    valuta_invoice_sent_at: Mapped[date | None] = mapped_column(nullable=True)
    valuta_shipped_at: Mapped[date | None] = mapped_column(nullable=True)
    valuta_tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    valuta_documents_arrived_at: Mapped[date | None] = mapped_column(nullable=True)
    valuta_projected_payout_date: Mapped[date | None] = mapped_column(nullable=True)
    valuta_payout_received_at: Mapped[date | None] = mapped_column(nullable=True)
    valuta_bank_fee_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    payment_record: Mapped["PaymentRecordModel"] = relationship(back_populates="workflow")

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from settlement_modules.payments.models import PaymentWorkflowRecord

        return PaymentWorkflowRecord(
            manual_note=self.manual_note,
            flow_type=_stored_enum(FlowType, self.flow_type),
            invoitix_sent_at=self.invoitix_sent_at,
            invoitix_decision=_stored_enum(
                InvoitixDecision, self.invoitix_decision, InvoitixDecision.PENDING,
            ),
            invoitix_rejected_at=self.invoitix_rejected_at,
            invoitix_resubmitted_at=self.invoitix_resubmitted_at,
            invoitix_approved_at=self.invoitix_approved_at,
            invoitix_paid_out_at=self.invoitix_paid_out_at,
            invoitix_payout_reference=self.invoitix_payout_reference,
            invoitix_projected_income_added_at=self.invoitix_projected_income_added_at,
            invoitix_payout_confirmed_at=self.invoitix_payout_confirmed_at,
            valuta_mode=_stored_enum(ValutaMode, self.valuta_mode, ValutaMode.VALUTA),
            valuta_countdown_start=_stored_enum(CountdownStart, self.valuta_countdown_start),
            valuta_countdown_days=self.valuta_countdown_days,
            valuta_skonto_percent=(
                round_money(self.valuta_skonto_percent)
                if self.valuta_skonto_percent is not None else None
            ),
            valuta_sent_to_accountant_at=self.valuta_sent_to_accountant_at,
            valuta_invoice_dispatch=_stored_enum(InvoiceDispatch, self.valuta_invoice_dispatch),
            valuta_invoice_sent_at=self.valuta_invoice_sent_at,
            valuta_shipped_at=self.valuta_shipped_at,
            valuta_tracking_number=self.valuta_tracking_number,
            valuta_documents_arrived_at=self.valuta_documents_arrived_at,
            valuta_projected_payout_date=self.valuta_projected_payout_date,
            valuta_payout_received_at=self.valuta_payout_received_at,
            valuta_bank_fee_amount=(
                round_money(self.valuta_bank_fee_amount)
                if self.valuta_bank_fee_amount is not None else None
            ),
        )

    @classmethod
    def from_dto(cls, dto) -> "PaymentWorkflowModel":
        """Create ORM model from frozen dataclass."""
        model = cls()
        model.apply(dto)
        return model

    def apply(self, dto) -> None:
        """Overwrite every column from a ``PaymentWorkflowRecord``."""
        self.manual_note = dto.manual_note
        self.flow_type = _enum_value(dto.flow_type)
        self.invoitix_sent_at = dto.invoitix_sent_at
        self.invoitix_decision = (dto.invoitix_decision or InvoitixDecision.PENDING).value
        self.invoitix_rejected_at = dto.invoitix_rejected_at
        self.invoitix_resubmitted_at = dto.invoitix_resubmitted_at
        self.invoitix_approved_at = dto.invoitix_approved_at
        self.invoitix_paid_out_at = dto.invoitix_paid_out_at
        self.invoitix_payout_reference = dto.invoitix_payout_reference
        self.invoitix_projected_income_added_at = dto.invoitix_projected_income_added_at
        self.invoitix_payout_confirmed_at = dto.invoitix_payout_confirmed_at
        self.valuta_mode = (dto.valuta_mode or ValutaMode.VALUTA).value
        self.valuta_countdown_start = _enum_value(dto.valuta_countdown_start)
        self.valuta_countdown_days = dto.valuta_countdown_days
        self.valuta_skonto_percent = dto.valuta_skonto_percent
        self.valuta_sent_to_accountant_at = dto.valuta_sent_to_accountant_at
        self.valuta_invoice_dispatch = _enum_value(dto.valuta_invoice_dispatch)
        self.valuta_invoice_sent_at = dto.valuta_invoice_sent_at
        self.valuta_shipped_at = dto.valuta_shipped_at
        self.valuta_tracking_number = dto.valuta_tracking_number
        self.valuta_documents_arrived_at = dto.valuta_documents_arrived_at
        self.valuta_projected_payout_date = dto.valuta_projected_payout_date
        self.valuta_payout_received_at = dto.valuta_payout_received_at
        self.valuta_bank_fee_amount = dto.valuta_bank_fee_amount

    def __repr__(self) -> str:
        return f"<PaymentWorkflowModel {self.payment_record_id}: {self.flow_type}>"
