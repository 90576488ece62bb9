"""Unit tests for configuration loading."""

import json
from decimal import Decimal
from pathlib import Path

import pytest

from src.billing.config import BillingConfig, load_config
from src.billing.exceptions import ConfigError


class TestBillingConfig:
    """Test cases for BillingConfig validation."""

    def test_defaults(self):
        config = BillingConfig()
        assert config.tax_rate == Decimal("0.05")
        assert config.invoice_prefix == "GST"
        assert config.tz.key == "Asia/Kolkata"

    def test_db_paths_follow_data_dir(self, tmp_path):
        config = BillingConfig(data_dir=str(tmp_path))
        assert config.invoice_db_path == Path(tmp_path) / "invoices.db"
        assert config.user_db_path == Path(tmp_path) / "user_database.db"

    @pytest.mark.parametrize("rate", ["abc", "1", "-0.1", "1.5"])
    def test_bad_tax_rate(self, rate):
        with pytest.raises(ConfigError):
            BillingConfig(tax_rate=rate)

    def test_string_tax_rate_is_converted(self):
        assert BillingConfig(tax_rate="0.12").tax_rate == Decimal("0.12")

    def test_empty_prefix(self):
        with pytest.raises(ConfigError):
            BillingConfig(invoice_prefix="  ")

    def test_unknown_timezone(self):
        with pytest.raises(ConfigError, match="timezone"):
            BillingConfig(timezone="Mars/Olympus")

    def test_bad_timeout(self):
        with pytest.raises(ConfigError):
            BillingConfig(db_timeout="soon")


class TestLoadConfig:
    """Test cases for load_config."""

    def test_file_values(self, tmp_path):
        path = tmp_path / "billing.json"
        path.write_text(json.dumps({"shop_name": "Test Shop", "tax_rate": "0.18"}), encoding="utf-8")
        config = load_config(path, environ={})
        assert config.shop_name == "Test Shop"
        assert config.tax_rate == Decimal("0.18")

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "billing.json"
        path.write_text(json.dumps({"tax_rate": "0.18"}), encoding="utf-8")
        config = load_config(path, environ={"BILLING_TAX_RATE": "0.12", "BILLING_DATA_DIR": str(tmp_path)})
        assert config.tax_rate == Decimal("0.12")
        assert config.data_dir == tmp_path

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "billing.json"
        path.write_text(json.dumps({"tax": "0.18"}), encoding="utf-8")
        with pytest.raises(ConfigError, match="Unknown config keys"):
            load_config(path, environ={})

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.json", environ={})

    def test_file_must_hold_object(self, tmp_path):
        path = tmp_path / "billing.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path, environ={})
