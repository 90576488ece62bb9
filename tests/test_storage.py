"""
Unit tests for the SQLite invoice store.

Tests saving, loading and the per-user history ordering.
"""

import sqlite3
import tempfile
import unittest
from datetime import timedelta
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch
from zoneinfo import ZoneInfo

from src.billing.cart import Cart
from src.billing.exceptions import PersistenceError
from src.billing.models import Product
from src.billing.storage import SqliteInvoiceStore


class TestSqliteInvoiceStore(unittest.TestCase):
    """Test cases for SqliteInvoiceStore."""

    def setUp(self):
        """Set up a fresh database and a cart."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_file = Path(self.temp_dir.name) / "data" / "invoices.db"
        self.store = SqliteInvoiceStore(self.db_file)
        self.product = Product(id=1, name="Groundnut Oil - 1L Tin", price=Decimal("250"))
        self.cart = Cart(tax_rate=Decimal("0.05"))

    def tearDown(self):
        self.temp_dir.cleanup()

    def make_invoice(self, customer="Test Customer", user_id="1", phone=None):
        self.cart.clear()
        self.cart.add_line(self.product, 5)
        self.cart.add_line(self.product, 1, overridden_rate="300")
        return self.cart.finalize(customer, phone, user_id=user_id)

    def test_database_created(self):
        """The store creates its directory and tables on start-up."""
        self.assertTrue(self.db_file.exists())
        with sqlite3.connect(self.db_file) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        self.assertIn("invoices", tables)
        self.assertIn("invoice_items", tables)

    def test_save_and_load_round_trip(self):
        """A saved invoice loads back with exact amounts and ordered lines."""
        invoice = self.make_invoice(phone="9876543210")
        persistence_id = self.store.save(invoice)

        loaded = self.store.get_invoice(persistence_id)
        self.assertIsNotNone(loaded)
        self.assertEqual(loaded.id, persistence_id)
        self.assertIsNotNone(loaded.created_at)
        self.assertEqual(loaded.invoice_number, invoice.invoice_number)
        self.assertEqual(loaded.customer_phone, "9876543210")
        self.assertEqual(loaded.subtotal, Decimal("1550"))
        self.assertEqual(loaded.tax_amount, Decimal("77.5"))
        self.assertEqual(loaded.grand_total, Decimal("1627.5"))
        self.assertEqual(loaded.items, invoice.items)
        self.assertEqual(loaded.date, invoice.date)

    def test_save_returns_distinct_ids(self):
        first = self.store.save(self.make_invoice())
        second = self.store.save(self.make_invoice())
        self.assertNotEqual(first, second)

    def test_already_saved_invoice_is_not_stored_twice(self):
        invoice = self.make_invoice()
        saved = invoice.mark_saved(self.store.save(invoice))
        self.assertEqual(self.store.save(saved), saved.id)
        self.assertEqual(len(self.store.list_invoices("1")), 1)

    def test_duplicate_invoice_number_fails(self):
        invoice = self.make_invoice()
        self.store.save(invoice)
        with self.assertRaises(PersistenceError):
            self.store.save(invoice)

    def test_history_most_recent_first(self):
        numbers = [self.store_invoice(f"Customer {i}") for i in range(3)]
        history = self.store.list_invoices("1")
        self.assertEqual([inv.invoice_number for inv in history], list(reversed(numbers)))

    def test_history_filtered_by_user(self):
        self.store_invoice("Alice", user_id="1")
        self.store_invoice("Bob", user_id="2")
        history = self.store.list_invoices("2")
        self.assertEqual([inv.customer_name for inv in history], ["Bob"])
        self.assertEqual(self.store.list_invoices("3"), [])

    def test_created_at_stored_in_utc(self):
        """The stamp is written in UTC and read back in the store's timezone."""
        local_store = SqliteInvoiceStore(self.db_file, tz=ZoneInfo("Asia/Kolkata"))
        persistence_id = local_store.save(self.make_invoice())

        with sqlite3.connect(self.db_file) as conn:
            raw = conn.execute("SELECT created_at FROM invoices WHERE id = ?", (persistence_id,)).fetchone()[0]
        self.assertTrue(raw.endswith("+00:00"))

        loaded = local_store.get_invoice(persistence_id)
        self.assertEqual(loaded.created_at.utcoffset(), timedelta(hours=5, minutes=30))

    def test_history_order_survives_timezone_change(self):
        """Invoices saved under different timezones still list newest first."""
        first = self.make_invoice("Before")
        SqliteInvoiceStore(self.db_file, tz=ZoneInfo("Asia/Kolkata")).save(first)
        second = self.make_invoice("After")
        new_york = SqliteInvoiceStore(self.db_file, tz=ZoneInfo("America/New_York"))
        new_york.save(second)

        history = new_york.list_invoices("1")
        self.assertEqual([inv.customer_name for inv in history], ["After", "Before"])
        self.assertGreaterEqual(history[0].created_at, history[1].created_at)

    def test_connections_are_closed(self):
        opened = []
        real_connect = sqlite3.connect

        def tracking_connect(*args, **kwargs):
            conn = real_connect(*args, **kwargs)
            opened.append(conn)
            return conn

        invoice = self.make_invoice()
        with patch("src.billing.storage.sqlite3.connect", side_effect=tracking_connect):
            persistence_id = self.store.save(invoice)
            self.store.list_invoices("1")
            self.store.get_invoice(persistence_id)

        self.assertEqual(len(opened), 3)
        for conn in opened:
            with self.assertRaises(sqlite3.ProgrammingError):
                conn.execute("SELECT 1")

    def test_get_unknown_invoice(self):
        self.assertIsNone(self.store.get_invoice("missing"))

    def test_sqlite_errors_become_persistence_errors(self):
        invoice = self.make_invoice()
        with patch.object(self.store, "_connect", side_effect=sqlite3.OperationalError("database is locked")):
            with self.assertRaises(PersistenceError) as ctx:
                self.store.save(invoice)
            with self.assertRaises(PersistenceError):
                self.store.list_invoices("1")
        self.assertIn("Failed to save the invoice", str(ctx.exception))
        self.assertEqual(self.store.list_invoices("1"), [])

    def store_invoice(self, customer, user_id="1"):
        invoice = self.make_invoice(customer, user_id=user_id)
        self.store.save(invoice)
        return invoice.invoice_number


if __name__ == '__main__':
    unittest.main()
