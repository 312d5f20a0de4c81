"""Database layer - engine, session factory, and base classes."""

from settlement_kernel.db.base import MONEY, Base, TrackedBase
from settlement_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)

__all__ = [
    "MONEY",
    "Base",
    "TrackedBase",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
]
