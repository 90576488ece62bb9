"""Bill history: table building and search for saved invoices."""

from typing import List, Sequence

import pandas as pd

from .models import Invoice
from .money import quantize

HISTORY_COLUMNS = ['id', 'Date', 'Invoice #', 'Customer', 'Amount']


def summarize(invoices: Sequence[Invoice]) -> pd.DataFrame:
    """
    Build the history table shown on the Bill History page.

    Amounts are the stored grand totals; historical invoices are never
    recomputed from their lines.
    """
    rows = [
        {
            'id': invoice.id,
            'Date': invoice.date.strftime('%d/%m/%Y'),
            'Invoice #': invoice.invoice_number,
            'Customer': invoice.customer_name,
            'Amount': float(quantize(invoice.grand_total)),
        }
        for invoice in invoices
    ]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def search(invoices: Sequence[Invoice], term: str) -> List[Invoice]:
    """Case-insensitive match on customer name, phone or invoice number; order is kept"""
    term = (term or "").strip().lower()
    if not term:
        return list(invoices)
    return [
        invoice for invoice in invoices
        if term in invoice.customer_name.lower()
        or term in invoice.invoice_number.lower()
        or term in (invoice.customer_phone or "").lower()
    ]
