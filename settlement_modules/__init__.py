"""
Settlement Modules.

Thin orchestration layers over the settlement kernel and engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines of the settlement steps)
- Persistence (ORM models and stores)
- A service facade owning the transaction boundary

Modules:
- Payments: Payment Records of loads, Invoitix and Valuta settlement
"""

from settlement_modules import payments

__all__ = ["payments"]
