"""Storage contracts the billing flow depends on."""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Invoice


class InvoiceStore(ABC):
    """Abstract base class for invoice persistence and history queries"""

    @abstractmethod
    def save(self, invoice: Invoice) -> str:
        """
        Durably store an invoice.

        Returns:
            Opaque persistence id

        Raises:
            PersistenceError: if the invoice could not be stored
        """
        pass

    @abstractmethod
    def list_invoices(self, user_id: str) -> List[Invoice]:
        """Return the user's saved invoices, most recent first"""
        pass

    @abstractmethod
    def get_invoice(self, persistence_id: str) -> Optional[Invoice]:
        """Return one saved invoice, or None if it does not exist"""
        pass
