"""
Payment Record Stores (``settlement_modules.payments.store``).

Responsibility
--------------
The persistence seam of the settlement engine.  ``PaymentStore`` is the
protocol the payment service depends on; ``SqlAlchemyPaymentStore``
implements it over the ORM models and ``InMemoryPaymentStore`` keeps
records in a dict for tests and embedding.

Architecture position
---------------------
**Modules layer** -- persistence adapters.  Imports ORM models from
``orm.py`` and value objects from ``models.py``.

Invariants enforced
-------------------
* Every write inside ``unit_of_work()`` is committed together or not at
  all.  Nested ``unit_of_work()`` calls join the outer one.
* Stores hand out frozen ``PaymentRecord`` snapshots, never live ORM rows.

Failure modes
-------------
* ``PaymentNotFoundError`` -- update / mark_paid of an unknown payment.
* ``PaymentStoreError`` -- the database rejected a statement or the
  commit; the unit of work has been rolled back.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Protocol, runtime_checkable
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from settlement_kernel.domain.settlement import PaymentStatus
from settlement_kernel.exceptions import PaymentNotFoundError, PaymentStoreError
from settlement_kernel.logging_config import get_logger
from settlement_modules.payments.models import NewPayment, PaymentChanges, PaymentRecord
from settlement_modules.payments.orm import PaymentRecordModel, PaymentWorkflowModel

logger = get_logger("modules.payments.store")


@runtime_checkable
class PaymentStore(Protocol):
    """Protocol for the Payment Record Store used by the settlement service."""

    def get_by_load(self, load_id: str) -> PaymentRecord | None: ...

    def create(self, payment: NewPayment) -> PaymentRecord: ...

    def update(self, payment_id: UUID, changes: PaymentChanges) -> PaymentRecord: ...

    def mark_paid(self, payment_id: UUID, paid_date: date) -> PaymentRecord: ...

    def unit_of_work(self): ...


def _apply_changes(record: PaymentRecord, changes: PaymentChanges) -> PaymentRecord:
    updates = {
        name: getattr(changes, name)
        for name in ("amount", "status", "issue_date", "due_date", "notes", "workflow")
        if getattr(changes, name) is not None
    }
    return replace(record, **updates)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryPaymentStore:
    """
    Dict-backed store.

    ``unit_of_work()`` snapshots the records and restores them if the
    block raises.
    """

    def __init__(self) -> None:
        self._records: dict[UUID, PaymentRecord] = {}
        self._depth = 0

    def __len__(self) -> int:
        return len(self._records)

    def get(self, payment_id: UUID) -> PaymentRecord:
        record = self._records.get(payment_id)
        if record is None:
            raise PaymentNotFoundError(str(payment_id))
        return record

    def get_by_load(self, load_id: str) -> PaymentRecord | None:
        matches = [r for r in self._records.values() if r.load_id == load_id]
        return matches[-1] if matches else None

    def create(self, payment: NewPayment) -> PaymentRecord:
        record = PaymentRecord(
            payment_id=uuid4(),
            load_id=payment.load_id,
            broker_id=payment.broker_id,
            status=payment.status,
            amount=payment.amount,
            currency=payment.currency,
            issue_date=payment.issue_date,
            due_date=payment.due_date,
            notes=payment.notes,
            workflow=payment.workflow,
        )
        self._records[record.payment_id] = record
        return record

    def update(self, payment_id: UUID, changes: PaymentChanges) -> PaymentRecord:
        record = _apply_changes(self.get(payment_id), changes)
        self._records[payment_id] = record
        return record

    def mark_paid(self, payment_id: UUID, paid_date: date) -> PaymentRecord:
        record = replace(self.get(payment_id), status=PaymentStatus.PAID, paid_date=paid_date)
        self._records[payment_id] = record
        return record

    @contextmanager
    def unit_of_work(self) -> Iterator[InMemoryPaymentStore]:
        snapshot = dict(self._records)
        self._depth += 1
        try:
            yield self
        except Exception:
            if self._depth == 1:
                self._records = snapshot
            raise
        finally:
            self._depth -= 1


# ---------------------------------------------------------------------------
# SQLAlchemy
# ---------------------------------------------------------------------------


class SqlAlchemyPaymentStore:
    """
    Store over ``PaymentRecordModel`` / ``PaymentWorkflowModel``.

    Each call outside ``unit_of_work()`` runs in its own transaction.

    Usage::

        store = SqlAlchemyPaymentStore(get_session_factory())
        with store.unit_of_work():
            payment = store.create(new_payment)
            store.mark_paid(payment.payment_id, today)
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._session: Session | None = None

    @contextmanager
    def unit_of_work(self) -> Iterator[SqlAlchemyPaymentStore]:
        if self._session is not None:
            yield self
            return

        session = self._session_factory()
        self._session = session
        try:
            yield self
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning("payment_store_rolled_back", extra={"error": str(exc)})
            raise PaymentStoreError("transaction", str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            self._session = None

    @contextmanager
    def _active_session(self) -> Iterator[Session]:
        with self.unit_of_work():
            yield self._session

    def _load(self, session: Session, payment_id: UUID) -> PaymentRecordModel:
        model = session.get(PaymentRecordModel, payment_id)
        if model is None:
            raise PaymentNotFoundError(str(payment_id))
        return model

    def get(self, payment_id: UUID) -> PaymentRecord:
        with self._active_session() as session:
            return self._load(session, payment_id).to_dto()

    def get_by_load(self, load_id: str) -> PaymentRecord | None:
        with self._active_session() as session:
            model = session.scalars(
                select(PaymentRecordModel)
                .where(PaymentRecordModel.load_id == load_id)
                .order_by(PaymentRecordModel.created_at.desc())
                .limit(1)
            ).first()
            return model.to_dto() if model is not None else None

    def create(self, payment: NewPayment) -> PaymentRecord:
        with self._active_session() as session:
            model = PaymentRecordModel.from_dto(payment, payment_id=uuid4())
            session.add(model)
            session.flush()
            logger.debug(
                "payment_record_created",
                extra={"payment_id": str(model.id), "load_id": payment.load_id},
            )
            return model.to_dto()

    def update(self, payment_id: UUID, changes: PaymentChanges) -> PaymentRecord:
        with self._active_session() as session:
            model = self._load(session, payment_id)
            if changes.amount is not None:
                model.amount = changes.amount
            if changes.status is not None:
                model.status = changes.status.value
            if changes.issue_date is not None:
                model.issue_date = changes.issue_date
            if changes.due_date is not None:
                model.due_date = changes.due_date
            if changes.notes is not None:
                model.notes = changes.notes
            if changes.workflow is not None:
                if model.workflow is None:
                    model.workflow = PaymentWorkflowModel.from_dto(changes.workflow)
                else:
                    model.workflow.apply(changes.workflow)
            session.flush()
            return model.to_dto()

    def mark_paid(self, payment_id: UUID, paid_date: date) -> PaymentRecord:
        with self._active_session() as session:
            model = self._load(session, payment_id)
            model.status = PaymentStatus.PAID.value
            model.paid_date = paid_date
            session.flush()
            return model.to_dto()
