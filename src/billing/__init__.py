#!/usr/bin/env python3
"""
Billing Core Package
Working bill, invoice snapshots, storage and rendering for the billing app
"""

__version__ = "1.0.0"

from .cart import Cart
from .catalog import Catalog, DEFAULT_PRODUCTS, load_catalog
from .config import BillingConfig, load_config
from .exceptions import (
    BillingError, BillValidationError, InvalidQuantity, InvalidCustomer, EmptyCart,
    PersistenceError, InvoiceNotSaved, CatalogError, UnknownProduct, ConfigError,
)
from .gateway import InvoiceStore
from .models import Product, LineItem, Invoice, InvoiceTotals
from .numbering import InvoiceNumberGenerator
from .session import BillingSession
from .storage import SqliteInvoiceStore

__all__ = [
    # Core
    'Cart',
    'Product',
    'LineItem',
    'Invoice',
    'InvoiceTotals',
    'InvoiceNumberGenerator',

    # Catalog & config
    'Catalog',
    'DEFAULT_PRODUCTS',
    'load_catalog',
    'BillingConfig',
    'load_config',

    # Storage & flow
    'InvoiceStore',
    'SqliteInvoiceStore',
    'BillingSession',

    # Errors
    'BillingError',
    'BillValidationError',
    'InvalidQuantity',
    'InvalidCustomer',
    'EmptyCart',
    'PersistenceError',
    'InvoiceNotSaved',
    'CatalogError',
    'UnknownProduct',
    'ConfigError',
]
