"""
Tests for settlement configuration.

Covers:
- SettlementConfig defaults and validation
- YAML parsing, including unknown keys
- get_active_config resolution order and its trace record
- compute_checksum determinism
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from settlement_config import CONFIG_ENV_VAR, SettlementConfig, get_active_config
from settlement_config.loader import (
    compute_checksum,
    load_settlement_config,
    parse_decimal,
    parse_settlement_config,
)

DEFAULTS_YAML = Path(__file__).resolve().parents[2] / "settlement_config" / "defaults.yaml"


def _write_config(tmp_path, data) -> Path:
    path = tmp_path / "settlement.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestSettlementConfigSchema:
    """Tests for SettlementConfig construction."""

    def test_defaults(self):
        config = SettlementConfig()

        assert config.invoitix_fee_rate == Decimal("0.07")
        assert config.invoitix_fixed_fee == Decimal("3.15")
        assert config.invoitix_payout_days == 2
        assert config.default_currency == "EUR"
        assert config.notes_payload_kind == "LOAD_PAYMENT_WORKFLOW_V1"

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"invoitix_fee_rate": 0.07}, "Decimal"),
            ({"invoitix_fee_rate": Decimal("1.5")}, "between 0 and 1"),
            ({"invoitix_fixed_fee": Decimal("-1")}, "negative"),
            ({"invoitix_payout_days": -1}, "negative"),
            ({"default_currency": "euro"}, "ISO"),
            ({"notes_payload_kind": "  "}, "empty"),
            ({"database_url": ""}, "empty"),
            ({"log_level": "LOUD"}, "log_level"),
        ],
    )
    def test_invalid_values(self, kwargs, match):
        with pytest.raises(ValueError, match=match):
            SettlementConfig(**kwargs)

    def test_frozen(self):
        config = SettlementConfig()

        with pytest.raises(AttributeError):
            config.invoitix_payout_days = 5


class TestLoader:
    """Tests for YAML parsing."""

    def test_shipped_defaults_match_schema(self):
        assert load_settlement_config(DEFAULTS_YAML) == SettlementConfig()

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = _write_config(tmp_path, {
            "settlement": {"invoitix": {"fee_rate": "0.05", "payout_days": 3}},
            "logging": {"level": "debug"},
        })

        config = load_settlement_config(path)

        assert config.invoitix_fee_rate == Decimal("0.05")
        assert config.invoitix_payout_days == 3
        assert config.invoitix_fixed_fee == Decimal("3.15")
        assert config.log_level == "DEBUG"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_settlement_config(path) == SettlementConfig()

    def test_float_fee_parsed_through_str(self):
        config = parse_settlement_config({"settlement": {"invoitix": {"fixed_fee": 2.1}}})

        assert config.invoitix_fixed_fee == Decimal("2.1")

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="Unknown configuration sections"):
            parse_settlement_config({"ledger": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="fee_percent"):
            parse_settlement_config({"settlement": {"invoitix": {"fee_percent": 7}}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            parse_settlement_config({"database": "sqlite://"})

    def test_parse_decimal_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_decimal("seven", "fee_rate")
        with pytest.raises(ValueError):
            parse_decimal(True, "fee_rate")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settlement_config(tmp_path / "missing.yaml")


class TestGetActiveConfig:
    """Tests for the runtime configuration entrypoint."""

    def test_defaults_without_source(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        assert get_active_config() == SettlementConfig()

    def test_environment_variable(self, monkeypatch, tmp_path):
        path = _write_config(tmp_path, {"settlement": {"default_currency": "CHF"}})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert get_active_config().default_currency == "CHF"

    def test_explicit_path_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))
        path = _write_config(tmp_path, {"settlement": {"invoitix": {"payout_days": 5}}})

        assert get_active_config(path).invoitix_payout_days == 5

    def test_trace_logged(self, monkeypatch, captured_logs):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "SETTLEMENT_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_source"] == "defaults"
        assert traces[0]["checksum"] == compute_checksum(config)


class TestChecksum:

    def test_deterministic(self):
        assert compute_checksum(SettlementConfig()) == compute_checksum(SettlementConfig())

    def test_changes_with_values(self):
        changed = SettlementConfig(invoitix_payout_days=3)

        assert compute_checksum(changed) != compute_checksum(SettlementConfig())
