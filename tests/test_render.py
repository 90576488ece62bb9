"""
Unit tests for bill tables and the printable Excel invoice.
"""

import io
from decimal import Decimal

import openpyxl
import pytest

from src.billing.exceptions import InvoiceNotSaved
from src.billing.render import LINE_COLUMNS, export_invoice_xlsx, line_items_frame, tax_caption


@pytest.fixture
def pending_invoice(cart, oil):
    cart.add_line(oil, 5)
    cart.add_line(oil, 1, overridden_rate="300")
    return cart.finalize("Test Customer", "9876543210")


@pytest.fixture
def saved_invoice(pending_invoice):
    return pending_invoice.mark_saved("abc123")


class TestLineItemsFrame:
    """Test the on-screen line table."""

    def test_rows(self, cart, oil):
        cart.add_line(oil, 3, overridden_rate="0.125")
        table = line_items_frame(cart.lines)
        assert list(table.columns) == LINE_COLUMNS
        assert table['Rate'].iloc[0] == pytest.approx(0.13)
        assert table['Amount'].iloc[0] == pytest.approx(0.38)

    def test_empty(self):
        assert line_items_frame(()).empty


class TestTaxCaption:
    """Test the tax label."""

    def test_uses_config_rate(self, config):
        assert tax_caption(config) == "GST (5%)"

    def test_prefers_invoice_rate(self, config, saved_invoice):
        old = saved_invoice.model_copy(update={'tax_rate': Decimal("0.12")})
        assert tax_caption(config, old) == "GST (12%)"


class TestExportInvoice:
    """Test the printable workbook."""

    def test_unsaved_invoice_cannot_be_printed(self, config, pending_invoice):
        with pytest.raises(InvoiceNotSaved):
            export_invoice_xlsx(pending_invoice, config)

    def test_workbook_layout(self, config, saved_invoice):
        content = export_invoice_xlsx(saved_invoice, config)
        ws = openpyxl.load_workbook(io.BytesIO(content))["Invoice"]

        assert ws["A1"].value == config.shop_name
        assert ws["B4"].value == saved_invoice.invoice_number
        assert ws["B5"].value == "17/06/2024"
        assert ws["B6"].value == "Test Customer"
        assert ws["B7"].value == "9876543210"

        assert ws["B10"].value == "Oil 1L"
        assert ws["C10"].value == 5
        assert ws["D10"].value == 250
        assert ws["E10"].value == 1250
        assert ws["D11"].value == 300

        assert ws["D13"].value == "Subtotal"
        assert ws["E13"].value == 1550
        assert ws["D14"].value == "GST (5%)"
        assert ws["E14"].value == pytest.approx(77.5)
        assert ws["D15"].value == "Grand Total"
        assert ws["E15"].value == pytest.approx(1627.5)

    def test_writes_to_path_and_stream(self, config, saved_invoice, tmp_path):
        path = tmp_path / "invoice.xlsx"
        content = export_invoice_xlsx(saved_invoice, config, path)
        assert path.read_bytes() == content

        stream = io.BytesIO()
        export_invoice_xlsx(saved_invoice, config, stream)
        assert stream.getvalue()[:2] == b"PK"
