"""
Configuration Loader (``settlement_config.loader``).

Responsibility
--------------
Loads a settlement YAML file and parses it into a ``SettlementConfig``.
Runtime callers go through ``settlement_config.get_active_config()``;
this module is its parsing backend and test tooling.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on kernel,
engines, or modules.

Invariants enforced
-------------------
* Unknown sections and keys raise ``ValueError`` instead of being ignored.
* Monetary values are parsed through ``str`` into ``Decimal``.
* ``compute_checksum`` is deterministic for identical configurations.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.

Expected layout::

    settlement:
      invoitix:
        fee_rate: "0.07"
        fixed_fee: "3.15"
        payout_days: 2
      default_currency: EUR
      notes_payload_kind: LOAD_PAYMENT_WORKFLOW_V1
    database:
      url: "sqlite://"
    logging:
      level: INFO
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from settlement_config.schema import SettlementConfig

_SECTIONS = frozenset({"settlement", "database", "logging"})
_SETTLEMENT_KEYS = frozenset({"invoitix", "default_currency", "notes_payload_kind"})
_INVOITIX_KEYS = frozenset({"fee_rate", "fixed_fee", "payout_days"})
_DATABASE_KEYS = frozenset({"url"})
_LOGGING_KEYS = frozenset({"level"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a YAML scalar as Decimal (floats go through ``str``)."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _section(data: dict[str, Any], name: str, allowed: frozenset[str]) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping")
    unknown = set(section) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in '{name}': {sorted(unknown)}")
    return section


def parse_settlement_config(data: dict[str, Any]) -> SettlementConfig:
    """
    Parse a ``SettlementConfig`` from a dict.

    Absent keys keep the schema defaults.

    Raises:
        ValueError: on unknown sections or keys, or invalid values.
    """
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    settlement = _section(data, "settlement", _SETTLEMENT_KEYS)
    invoitix = _section(settlement, "invoitix", _INVOITIX_KEYS)
    database = _section(data, "database", _DATABASE_KEYS)
    logging_section = _section(data, "logging", _LOGGING_KEYS)

    kwargs: dict[str, Any] = {}
    if "fee_rate" in invoitix:
        kwargs["invoitix_fee_rate"] = parse_decimal(invoitix["fee_rate"], "invoitix.fee_rate")
    if "fixed_fee" in invoitix:
        kwargs["invoitix_fixed_fee"] = parse_decimal(invoitix["fixed_fee"], "invoitix.fixed_fee")
    if "payout_days" in invoitix:
        kwargs["invoitix_payout_days"] = int(invoitix["payout_days"])
    if "default_currency" in settlement:
        kwargs["default_currency"] = str(settlement["default_currency"])
    if "notes_payload_kind" in settlement:
        kwargs["notes_payload_kind"] = str(settlement["notes_payload_kind"])
    if "url" in database:
        kwargs["database_url"] = str(database["url"])
    if "level" in logging_section:
        kwargs["log_level"] = str(logging_section["level"]).upper()

    return SettlementConfig(**kwargs)


def load_settlement_config(path: Path | str) -> SettlementConfig:
    """Load and parse a settlement YAML file."""
    return parse_settlement_config(load_yaml_file(Path(path)))


def compute_checksum(config: SettlementConfig) -> str:
    """Deterministic SHA-256 of a configuration, for trace and change detection."""
    canonical = json.dumps(asdict(config), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
