"""Shared fixtures for the billing tests."""

from datetime import datetime
from decimal import Decimal
from itertools import count
from zoneinfo import ZoneInfo

import pytest

from src.billing.cart import Cart
from src.billing.catalog import Catalog
from src.billing.config import BillingConfig
from src.billing.models import Product
from src.billing.numbering import InvoiceNumberGenerator
from src.billing.storage import SqliteInvoiceStore

IST = ZoneInfo("Asia/Kolkata")
TAX_RATE = Decimal("0.05")


@pytest.fixture
def oil():
    return Product(id=1, name="Oil 1L", price=Decimal("250"))


@pytest.fixture
def tin():
    return Product(id=2, name="Groundnut Oil - 5L Tin", price=Decimal("1200"))


@pytest.fixture
def catalog(oil, tin):
    return Catalog([oil, tin])


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 6, 17, 10, 30, tzinfo=IST)


@pytest.fixture
def numbering():
    ticks = count(1718600000)
    return InvoiceNumberGenerator("GST", clock=lambda: float(next(ticks)))


@pytest.fixture
def cart(numbering, fixed_clock):
    return Cart(tax_rate=TAX_RATE, numbering=numbering, clock=fixed_clock)


@pytest.fixture
def config(tmp_path):
    return BillingConfig(data_dir=tmp_path / "data")


@pytest.fixture
def store(config):
    return SqliteInvoiceStore(config.invoice_db_path, tz=config.tz)
