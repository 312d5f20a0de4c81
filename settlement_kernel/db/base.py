"""
Module: settlement_kernel.db.base
Responsibility: Declarative base for the Payment Record tables.  Fixes the
    column types every settlement model shares: UUID keys, two-decimal
    money and plain calendar dates.
Architecture position: Kernel > DB.  Imported by every ORM model; imports
    nothing from the domain, engines or modules.

Invariants enforced:
    - Money columns are Numeric(14, 2).  Floats are never stored.
    - Settlement dates are ``Date`` columns; they carry no time of day.
    - Row timestamps come from the database server clock.

Failure modes:
    - IntegrityError on a duplicate primary key.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Numeric, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MONEY = Numeric(14, 2)


class Base(DeclarativeBase):
    """Declarative base; every table gets a uuid4 primary key ``id``."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: MONEY,
        date: Date(),
        datetime: DateTime(timezone=True),
        UUID: Uuid(),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base with server-side row timestamps.

    ``created_at`` orders the payments of one load (latest wins);
    ``updated_at`` moves on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
