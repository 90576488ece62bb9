"""Decimal helpers for rupee amounts."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a price-like value to Decimal without going through binary floats.

    Floats are converted via their shortest repr, so 0.1 becomes Decimal("0.1").

    Raises:
        InvalidOperation: if the value is not numeric
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation(f"Not a money value: {value!r}")
    if isinstance(value, (int, float, str)):
        return Decimal(str(value).strip())
    raise InvalidOperation(f"Not a money value: {value!r}")


def parse_rate(value: Any) -> Optional[Decimal]:
    """
    Parse an override rate typed by the user.

    Returns None when the value is absent, non-numeric, non-finite or not
    greater than zero; callers then fall back to the catalog price.
    """
    if value is None:
        return None
    try:
        rate = to_decimal(value)
    except (InvalidOperation, ValueError):
        return None
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


def quantize(amount: Decimal) -> Decimal:
    """Round to paise for display."""
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, symbol: str = "") -> str:
    """Format an amount at two decimals, e.g. format_money(Decimal('77.5'), '₹') -> '₹ 77.50'"""
    text = f"{quantize(amount):.2f}"
    return f"{symbol} {text}" if symbol else text


def format_rate(rate: Decimal) -> str:
    """Render a tax fraction as a percentage label: Decimal('0.05') -> '5%'"""
    percent = (rate * 100).normalize()
    return f"{percent:f}%"
