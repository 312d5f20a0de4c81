"""
Module: settlement_kernel.db.engine
Responsibility: Owns the process-wide SQLAlchemy engine and session factory
    used by ``SqlAlchemyPaymentStore``.
Architecture position: Kernel > DB.  Imports db/base.py only; ``create_tables``
    additionally imports the payment ORM so its tables are registered.

Invariants enforced:
    - In-memory SQLite shares one connection (StaticPool) so every session
      of the process sees the same database.
    - Sessions do not expire on commit; DTOs built after a commit read
      loaded attributes without a new round trip.

Failure modes:
    - RuntimeError when the engine is used before ``init_engine_from_url()``.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from settlement_kernel.db.base import Base
from settlement_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine for ``database_url`` and bind a session factory to it.

    Any previously initialised engine is disposed first.
    """
    global _engine, _session_factory

    reset_engine()
    url = make_url(database_url)
    options: dict = {"echo": echo}
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True

    _engine = create_engine(url, **options)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info(
        "engine_initialized",
        extra={"dialect": url.get_backend_name(), "database": url.database or ":memory:"},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _session_factory


def create_tables() -> None:
    """Create the payment_records and payment_workflows tables if missing."""
    from settlement_modules.payments import orm  # noqa: F401

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
