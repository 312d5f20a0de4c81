"""
settlement_config -- single public entrypoint for settlement configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``settlement_kernel`` and
    ``settlement_engines`` and below ``settlement_modules``.  The kernel
    and the engines MUST NEVER import from ``settlement_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - The returned ``SettlementConfig`` has passed schema validation.

Failure modes:
    - ``FileNotFoundError`` -- the selected YAML file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``SETTLEMENT_CONFIG_TRACE`` log entry with the source and checksum of
    the configuration in force.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from settlement_config.loader import compute_checksum, load_settlement_config
from settlement_config.schema import SettlementConfig

_logger = logging.getLogger("settlement_kernel.config")

CONFIG_ENV_VAR = "SETTLEMENT_CONFIG"


def get_active_config(path: Path | str | None = None) -> SettlementConfig:
    """The ONLY public configuration entrypoint.

    Resolution order: the explicit ``path``, then the file named by the
    ``SETTLEMENT_CONFIG`` environment variable, then the schema defaults.

    Raises:
        FileNotFoundError: If the selected file does not exist.
        ValueError: If configuration validation fails.
    """
    source = path if path is not None else os.environ.get(CONFIG_ENV_VAR)

    if source:
        config = load_settlement_config(source)
        source_name = str(source)
    else:
        config = SettlementConfig()
        source_name = "defaults"

    _logger.info(
        "SETTLEMENT_CONFIG_TRACE",
        extra={
            "trace_type": "SETTLEMENT_CONFIG_TRACE",
            "config_source": source_name,
            "checksum": compute_checksum(config),
            "invoitix_fee_rate": str(config.invoitix_fee_rate),
            "invoitix_fixed_fee": str(config.invoitix_fixed_fee),
            "invoitix_payout_days": config.invoitix_payout_days,
            "default_currency": config.default_currency,
        },
    )
    return config


__all__ = [
    "CONFIG_ENV_VAR",
    "SettlementConfig",
    "get_active_config",
    "load_settlement_config",
]
