#!/usr/bin/env python3
"""
Billing Core
Pydantic models for products, bill lines and invoices
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Catalog entry. Reference data, never edited by the billing flow."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(min_length=1)
    price: Decimal = Field(ge=0)


class LineItem(BaseModel):
    """One product at one effective price on a bill"""
    model_config = ConfigDict(frozen=True)

    line_id: str
    product_id: int
    name: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity

    def matches(self, product_id: int, unit_price: Decimal) -> bool:
        """True when this line is the merge target for the given product and price"""
        return self.product_id == product_id and self.unit_price == unit_price


class InvoiceTotals(BaseModel):
    """Subtotal, tax and grand total for a set of lines"""
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    tax_amount: Decimal
    grand_total: Decimal

    @classmethod
    def from_lines(cls, lines: Iterable[LineItem], tax_rate: Decimal) -> "InvoiceTotals":
        subtotal = sum((line.amount for line in lines), Decimal("0"))
        tax_amount = subtotal * tax_rate
        return cls(subtotal=subtotal, tax_amount=tax_amount, grand_total=subtotal + tax_amount)


class Invoice(BaseModel):
    """
    Immutable snapshot of a finalized bill.

    An invoice without an ``id`` is pending; it becomes saved once the store
    assigns a persistence id via ``mark_saved``, which returns a new value.
    """
    model_config = ConfigDict(frozen=True)

    invoice_number: str
    date: datetime
    customer_name: str
    customer_phone: Optional[str] = None
    items: Tuple[LineItem, ...]
    subtotal: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    tax_rate: Decimal
    user_id: str

    id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_saved(self) -> bool:
        return self.id is not None

    @property
    def totals(self) -> InvoiceTotals:
        return InvoiceTotals(
            subtotal=self.subtotal,
            tax_amount=self.tax_amount,
            grand_total=self.grand_total,
        )

    def mark_saved(self, persistence_id: str, created_at: Optional[datetime] = None) -> "Invoice":
        """Return a copy of this invoice carrying the store's identifier"""
        return self.model_copy(update={
            'id': persistence_id,
            'created_at': created_at if created_at is not None else self.created_at,
        })
