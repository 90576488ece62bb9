#!/usr/bin/env python3
"""
Billing Session
Connects one user's working bill to the invoice store
"""

import logging
from datetime import datetime
from typing import Any, Optional

from .cart import Cart
from .catalog import Catalog
from .config import BillingConfig
from .exceptions import PersistenceError
from .gateway import InvoiceStore
from .models import Invoice, LineItem
from .numbering import InvoiceNumberGenerator


class BillingSession:
    """
    Owns the cart of one logged-in user and drives the generate/save/print flow.

    A failed save never touches the cart: the bill stays editable and the
    unsaved invoice is kept in ``pending_invoice`` so the print action can
    retry the save.
    """

    def __init__(
        self,
        user_id: str,
        catalog: Catalog,
        store: InvoiceStore,
        config: BillingConfig,
        numbering: Optional[InvoiceNumberGenerator] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.user_id = user_id
        self.catalog = catalog
        self.store = store
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.cart = Cart(
            tax_rate=config.tax_rate,
            numbering=numbering or InvoiceNumberGenerator(config.invoice_prefix),
            clock=lambda: datetime.now(config.tz),
            logger=self.logger,
        )
        self.pending_invoice: Optional[Invoice] = None

    def add_product(self, product_id: Any, quantity: Any, overridden_rate: Any = None) -> LineItem:
        """Look the product up in the catalog and add it to the bill"""
        product = self.catalog.get(product_id)
        return self.cart.add_line(product, quantity, overridden_rate)

    def generate_bill(self, customer_name: str, customer_phone: Optional[str] = None) -> Invoice:
        """
        Finalize the cart and save the invoice.

        Returns:
            The saved invoice; the cart is cleared for the next customer.

        Raises:
            BillValidationError: if the bill is not valid (cart unchanged)
            PersistenceError: if saving failed (cart unchanged, invoice kept
                in ``pending_invoice``)
        """
        invoice = self.cart.finalize(customer_name, customer_phone, user_id=self.user_id)
        self.pending_invoice = invoice
        saved = self.save(invoice)
        self.pending_invoice = None
        self.cart.clear()
        return saved

    def save(self, invoice: Invoice) -> Invoice:
        """
        Persist an invoice if it is still pending and return the saved copy.

        The copy is read back from the store so it carries the store's
        ``created_at``.
        """
        if invoice.is_saved:
            return invoice
        try:
            persistence_id = self.store.save(invoice)
        except PersistenceError:
            self.logger.warning(f"Invoice {invoice.invoice_number} left pending after failed save")
            raise

        try:
            stored = self.store.get_invoice(persistence_id)
        except PersistenceError as e:
            self.logger.warning(f"Saved invoice {invoice.invoice_number} could not be read back: {e}")
            stored = None
        return stored if stored is not None else invoice.mark_saved(persistence_id)

    def prepare_print(self, invoice: Invoice) -> Invoice:
        """
        Gate for the print action: printing requires a saved invoice.

        A pending invoice is saved first; if that fails the PersistenceError
        propagates and nothing is printed. When the pending bill of this session
        is saved here, the cart is cleared as after a normal save.
        """
        saved = self.save(invoice)
        if self.pending_invoice is not None and self.pending_invoice.invoice_number == invoice.invoice_number:
            self.pending_invoice = None
            self.cart.clear()
        return saved

    def history(self):
        """Saved invoices of this user, most recent first"""
        return self.store.list_invoices(self.user_id)
