#!/usr/bin/env python3
"""
Billing Core - Invoice Builder
Working bill: line-item aggregation, totals and finalization
"""

import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Tuple

from .exceptions import EmptyCart, InvalidCustomer, InvalidQuantity
from .models import Invoice, InvoiceTotals, LineItem, Product
from .money import parse_rate
from .numbering import InvoiceNumberGenerator


def _coerce_quantity(value: Any) -> Optional[int]:
    """Return value as a positive int, or None if it is not one"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, float) and value.is_integer():
        quantity = int(value)
    elif isinstance(value, str) and re.fullmatch(r"\+?\d+", value.strip(), re.ASCII):
        quantity = int(value.strip())
    else:
        return None
    return quantity if quantity > 0 else None


class Cart:
    """
    The in-progress bill of one billing session.

    Lines are kept in insertion order and keyed by a line id drawn from a
    per-cart counter. Adding a product at a price already on the bill merges
    into that line; the same product at another price gets its own line.
    Every rejected call leaves the cart exactly as it was.
    """

    def __init__(
        self,
        tax_rate: Decimal,
        numbering: Optional[InvoiceNumberGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.tax_rate = tax_rate
        self.numbering = numbering or InvoiceNumberGenerator()
        self._clock = clock or (lambda: datetime.now().astimezone())
        self.logger = logger or logging.getLogger(__name__)

        self._lines: Dict[str, LineItem] = {}
        self._next_line = 1
        self.customer_name = ""
        self.customer_phone = ""

    # --- Views ---

    @property
    def lines(self) -> Tuple[LineItem, ...]:
        return tuple(self._lines.values())

    def get_line(self, line_id: str) -> Optional[LineItem]:
        return self._lines.get(line_id)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, line_id: object) -> bool:
        return line_id in self._lines

    # --- Mutations ---

    def set_customer(self, name: str, phone: Optional[str] = None):
        """Bind the customer fields of the bill form"""
        self.customer_name = name or ""
        self.customer_phone = phone or ""

    def add_line(self, product: Product, quantity: Any, overridden_rate: Any = None) -> LineItem:
        """
        Add a product to the bill.

        Args:
            product: Catalog product being billed
            quantity: Positive whole number of units
            overridden_rate: Optional custom unit price; ignored unless it is a
                number greater than zero

        Returns:
            The new or merged line

        Raises:
            InvalidQuantity: if quantity is not a positive whole number
        """
        qty = _coerce_quantity(quantity)
        if qty is None:
            raise InvalidQuantity("Quantity must be greater than zero.")

        unit_price = parse_rate(overridden_rate)
        if unit_price is None:
            unit_price = product.price

        for line_id, line in self._lines.items():
            if line.matches(product.id, unit_price):
                merged = line.model_copy(update={'quantity': line.quantity + qty})
                self._lines[line_id] = merged
                self.logger.debug(f"Merged {qty} x {product.name} @ {unit_price} into {line_id}")
                return merged

        line_id = f"L{self._next_line}"
        self._next_line += 1
        line = LineItem(
            line_id=line_id,
            product_id=product.id,
            name=product.name,
            unit_price=unit_price,
            quantity=qty,
        )
        self._lines[line_id] = line
        self.logger.debug(f"Added {line_id}: {qty} x {product.name} @ {unit_price}")
        return line

    def remove_line(self, line_id: str) -> bool:
        """Remove a line. Unknown ids are ignored; returns whether a line was removed."""
        removed = self._lines.pop(line_id, None)
        return removed is not None

    def set_quantity(self, line_id: str, new_quantity: Any) -> bool:
        """
        Change the quantity of a line in place.

        Non-positive or non-integer quantities and unknown ids are ignored;
        removing a line is done with ``remove_line``.
        """
        line = self._lines.get(line_id)
        qty = _coerce_quantity(new_quantity)
        if line is None or qty is None:
            return False
        self._lines[line_id] = line.model_copy(update={'quantity': qty})
        return True

    def clear(self):
        """Empty the bill for the next customer. Line ids keep counting up."""
        self._lines.clear()
        self.customer_name = ""
        self.customer_phone = ""

    # --- Derivation ---

    def compute_totals(self) -> InvoiceTotals:
        return InvoiceTotals.from_lines(self._lines.values(), self.tax_rate)

    def finalize(self, customer_name: str, customer_phone: Optional[str] = None, user_id: str = "") -> Invoice:
        """
        Snapshot the bill as an immutable invoice.

        Raises:
            EmptyCart: if there are no lines on the bill
            InvalidCustomer: if the customer name is blank
        """
        if self.is_empty:
            raise EmptyCart("Please add at least one item to the bill.")
        name = (customer_name or "").strip()
        if not name:
            raise InvalidCustomer("Please enter a customer name.")
        phone = (customer_phone or "").strip() or None

        totals = self.compute_totals()
        invoice = Invoice(
            invoice_number=self.numbering.next_number(),
            date=self._clock(),
            customer_name=name,
            customer_phone=phone,
            items=self.lines,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            grand_total=totals.grand_total,
            tax_rate=self.tax_rate,
            user_id=user_id,
        )
        self.logger.info(f"Finalized {invoice.invoice_number} for '{name}': {len(invoice.items)} lines, total {totals.grand_total}")
        return invoice
