#!/usr/bin/env python3
"""
Billing Render
Tables for on-screen bills and the printable Excel invoice
"""

import io
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

import openpyxl
import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.worksheet.worksheet import Worksheet

from .config import BillingConfig
from .exceptions import InvoiceNotSaved
from .models import Invoice, LineItem
from .money import format_rate, quantize

LINE_COLUMNS = ['line_id', 'Product', 'Quantity', 'Rate', 'Amount']
MONEY_FORMAT = '#,##0.00'


def line_items_frame(lines: Sequence[LineItem]) -> pd.DataFrame:
    """Bill lines as a display table (rupee values rounded to paise)"""
    rows = [
        {
            'line_id': line.line_id,
            'Product': line.name,
            'Quantity': line.quantity,
            'Rate': float(quantize(line.unit_price)),
            'Amount': float(quantize(line.amount)),
        }
        for line in lines
    ]
    return pd.DataFrame(rows, columns=LINE_COLUMNS)


def tax_caption(config: BillingConfig, invoice: Optional[Invoice] = None) -> str:
    """'GST (5%)', using the rate stored on the invoice when there is one"""
    rate = invoice.tax_rate if invoice is not None else config.tax_rate
    return f"{config.tax_label} ({format_rate(rate)})"


def _write_row(ws: Worksheet, row: int, values: Sequence, bold: bool = False, border: bool = True):
    thin_side = Side(border_style="thin", color="000000")
    for col_idx, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col_idx, value=value)
        if bold:
            cell.font = Font(bold=True)
        if border:
            cell.border = Border(left=thin_side, right=thin_side, top=thin_side, bottom=thin_side)
        if col_idx >= 3:
            cell.alignment = Alignment(horizontal="right")


def build_invoice_workbook(invoice: Invoice, config: BillingConfig) -> openpyxl.Workbook:
    """
    Lay out a saved invoice on a single worksheet.

    Raises:
        InvoiceNotSaved: if the invoice has not been stored yet
    """
    if not invoice.is_saved:
        raise InvoiceNotSaved(f"Invoice {invoice.invoice_number} must be saved before printing")

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Invoice"

    ws.cell(row=1, column=1, value=config.shop_name).font = Font(bold=True, size=16)
    ws.cell(row=2, column=1, value=f"{config.tax_label} Invoice").font = Font(bold=True, size=12)
    ws.cell(row=4, column=1, value="Invoice #")
    ws.cell(row=4, column=2, value=invoice.invoice_number)
    ws.cell(row=5, column=1, value="Date")
    ws.cell(row=5, column=2, value=invoice.date.strftime('%d/%m/%Y'))
    ws.cell(row=6, column=1, value="Billed To")
    ws.cell(row=6, column=2, value=invoice.customer_name)
    if invoice.customer_phone:
        ws.cell(row=7, column=1, value="Phone")
        ws.cell(row=7, column=2, value=invoice.customer_phone)

    header_row = 9
    _write_row(ws, header_row, ["#", "Product", "Quantity", f"Rate ({config.currency_symbol})",
                                f"Amount ({config.currency_symbol})"], bold=True)

    row = header_row
    for number, item in enumerate(invoice.items, start=1):
        row += 1
        _write_row(ws, row, [number, item.name, item.quantity,
                             quantize(item.unit_price), quantize(item.amount)])
        ws.cell(row=row, column=4).number_format = MONEY_FORMAT
        ws.cell(row=row, column=5).number_format = MONEY_FORMAT

    totals = [
        ("Subtotal", invoice.subtotal, False),
        (tax_caption(config, invoice), invoice.tax_amount, False),
        ("Grand Total", invoice.grand_total, True),
    ]
    row += 1
    for label, amount, bold in totals:
        row += 1
        label_cell = ws.cell(row=row, column=4, value=label)
        amount_cell = ws.cell(row=row, column=5, value=quantize(amount))
        amount_cell.number_format = MONEY_FORMAT
        amount_cell.alignment = Alignment(horizontal="right")
        if bold:
            label_cell.font = Font(bold=True)
            amount_cell.font = Font(bold=True)

    for column, width in zip("ABCDE", (8, 36, 10, 14, 16)):
        ws.column_dimensions[column].width = width
    ws.print_area = f"A1:E{row}"
    ws.page_setup.orientation = ws.ORIENTATION_PORTRAIT
    ws.page_setup.fitToWidth = 1

    return wb


def export_invoice_xlsx(
    invoice: Invoice,
    config: BillingConfig,
    output: Optional[Union[str, Path, BinaryIO]] = None,
) -> bytes:
    """
    Write the printable invoice workbook.

    Args:
        output: File path or binary stream; when None only the bytes are returned

    Returns:
        The .xlsx file content
    """
    wb = build_invoice_workbook(invoice, config)
    buffer = io.BytesIO()
    try:
        wb.save(buffer)
    finally:
        wb.close()
    content = buffer.getvalue()

    if isinstance(output, (str, Path)):
        Path(output).write_bytes(content)
    elif output is not None:
        output.write(content)
    return content
