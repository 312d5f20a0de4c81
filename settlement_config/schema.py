"""
Settlement Configuration Schema (``settlement_config.schema``).

Responsibility
--------------
Frozen dataclass holding every tunable of the settlement engine: the
Invoitix fee terms and payout SLA, the default currency for new payment
records, the discriminator of structured notes payloads, the database
URL of the payment store, and the log level.

Architecture position
---------------------
**Config layer** -- schema only.  Produced by ``settlement_config.loader``
and handed out by ``settlement_config.get_active_config()``.  The kernel
and the engines never import this package; the payment service passes
the values in explicitly.

Invariants enforced
-------------------
* Fee terms are ``Decimal`` (never ``float``) and non-negative.
* ``invoitix_fee_rate`` is a fraction in [0, 1].
* ``default_currency`` is a 3-letter upper-case code.

Failure modes
-------------
* ``ValueError`` at construction if any constraint is violated.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class SettlementConfig:
    """Runtime settings of the settlement engine.

    Contract: frozen; validated at construction via ``__post_init__``.
    Non-goals: does not read files or the environment -- the loader does.
    """

    invoitix_fee_rate: Decimal = Decimal("0.07")
    invoitix_fixed_fee: Decimal = Decimal("3.15")
    invoitix_payout_days: int = 2
    default_currency: str = "EUR"
    notes_payload_kind: str = "LOAD_PAYMENT_WORKFLOW_V1"
    database_url: str = "sqlite://"
    log_level: str = "INFO"

    def __post_init__(self):
        if not isinstance(self.invoitix_fee_rate, Decimal):
            raise ValueError("invoitix_fee_rate must be a Decimal")
        if not isinstance(self.invoitix_fixed_fee, Decimal):
            raise ValueError("invoitix_fixed_fee must be a Decimal")
        if self.invoitix_fee_rate < 0 or self.invoitix_fee_rate > 1:
            raise ValueError("invoitix_fee_rate must be between 0 and 1")
        if self.invoitix_fixed_fee < 0:
            raise ValueError("invoitix_fixed_fee cannot be negative")
        if self.invoitix_payout_days < 0:
            raise ValueError("invoitix_payout_days cannot be negative")
        if len(self.default_currency) != 3 or not self.default_currency.isupper():
            raise ValueError(
                f"default_currency must be a 3-letter ISO code, got '{self.default_currency}'"
            )
        if not self.notes_payload_kind.strip():
            raise ValueError("notes_payload_kind cannot be empty")
        if not self.database_url.strip():
            raise ValueError("database_url cannot be empty")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(_LOG_LEVELS)}, got '{self.log_level}'"
            )
