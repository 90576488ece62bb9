#!/usr/bin/env python3
"""
Billing Core
Custom exceptions for better error handling
"""


class BillingError(Exception):
    """Base exception for the billing application."""
    pass


class BillValidationError(BillingError):
    """Raised when user input for a bill is rejected. The cart is left untouched."""
    pass


class InvalidQuantity(BillValidationError):
    """Raised when a quantity is not a positive whole number."""
    pass


class InvalidCustomer(BillValidationError):
    """Raised when the customer name is missing."""
    pass


class EmptyCart(BillValidationError):
    """Raised when a bill is finalized without any line items."""
    pass


class PersistenceError(BillingError):
    """Raised when an invoice could not be saved or loaded. Safe to retry."""
    pass


class InvoiceNotSaved(BillingError):
    """Raised when printing/exporting an invoice that has no persistence id."""
    pass


class CatalogError(BillingError):
    """Exception raised for errors in the product catalog."""
    pass


class UnknownProduct(CatalogError):
    """Raised when a product id is not in the catalog."""
    pass


class ConfigError(BillingError):
    """Exception raised for errors in configuration."""
    pass
