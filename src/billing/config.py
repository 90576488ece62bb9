#!/usr/bin/env python3
"""
Billing Core - Configuration Management
Settings supplied once at process start: tax, shop details and file locations
"""

import json
import os
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config" / "billing_config.json"

# Environment variables that override single settings, e.g. BILLING_TAX_RATE=0.12
ENV_PREFIX = "BILLING_"


@dataclass
class BillingConfig:
    """Main configuration container"""
    shop_name: str = "Gujarati Shuddh Tel"
    tax_rate: Decimal = Decimal("0.05")
    tax_label: str = "GST"
    currency_symbol: str = "₹"
    invoice_prefix: str = "GST"
    timezone: str = "Asia/Kolkata"
    data_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "data")
    invoice_db_name: str = "invoices.db"
    user_db_name: str = "user_database.db"
    catalog_file: Optional[Path] = None
    db_timeout: float = 5.0

    def __post_init__(self):
        """Normalise types and validate on initialization"""
        try:
            self.tax_rate = Decimal(str(self.tax_rate))
        except InvalidOperation:
            raise ConfigError(f"Tax rate is not a number: {self.tax_rate!r}")
        if not self.tax_rate.is_finite() or not (0 <= self.tax_rate < 1):
            raise ConfigError(f"Tax rate must be a fraction between 0 and 1, got {self.tax_rate}")

        if not self.invoice_prefix or not self.invoice_prefix.strip():
            raise ConfigError("Invoice prefix must not be empty")

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigError(f"Unknown timezone: {self.timezone}")

        self.data_dir = Path(self.data_dir)
        if self.catalog_file is not None:
            self.catalog_file = Path(self.catalog_file)
        try:
            self.db_timeout = float(self.db_timeout)
        except (TypeError, ValueError):
            raise ConfigError(f"Database timeout is not a number: {self.db_timeout!r}")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def invoice_db_path(self) -> Path:
        return self.data_dir / self.invoice_db_name

    @property
    def user_db_path(self) -> Path:
        return self.data_dir / self.user_db_name


def _read_config_file(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load config from {config_file}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a JSON object")
    return data


def load_config(config_file: Optional[str | Path] = None, environ: Optional[Dict[str, str]] = None) -> BillingConfig:
    """
    Create configuration with validation

    Args:
        config_file: JSON file with any BillingConfig fields. Defaults to
            config/billing_config.json, which may be absent.
        environ: Environment mapping for BILLING_* overrides (defaults to os.environ)

    Returns:
        Validated BillingConfig instance
    """
    environ = os.environ if environ is None else environ
    known = {f.name for f in fields(BillingConfig)}

    values: Dict[str, Any] = {}
    path = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
    if config_file or path.exists():
        values.update(_read_config_file(path))

    for name in known:
        env_value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if env_value is not None:
            values[name] = env_value

    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    return BillingConfig(**values)
