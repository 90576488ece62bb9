#!/usr/bin/env python3
"""
Billing Storage - SQLite invoice store
Saves finalized invoices and serves the per-user history
"""

import logging
import secrets
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterator, List, Optional
from zoneinfo import ZoneInfo

from .exceptions import PersistenceError
from .gateway import InvoiceStore
from .models import Invoice, LineItem

INVOICE_TABLE = 'invoices'
ITEM_TABLE = 'invoice_items'


class SqliteInvoiceStore(InvoiceStore):
    """
    Invoice store backed by a single SQLite file.

    Money is stored as TEXT so Decimal values come back exactly as written.
    ``created_at`` is stamped by the store in UTC when the invoice is saved and
    is the ordering key for history; it is returned in the configured timezone.
    """

    def __init__(
        self,
        db_file: Path,
        tz: Optional[ZoneInfo] = None,
        timeout: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.db_file = Path(db_file)
        self.tz = tz
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.initialize_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection committed or rolled back by ``with conn``, then closed"""
        conn = sqlite3.connect(self.db_file, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize_database(self):
        """Initialize the database with required tables"""
        try:
            self.db_file.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {INVOICE_TABLE} (
                    id TEXT PRIMARY KEY, invoice_number TEXT UNIQUE NOT NULL,
                    invoice_date TEXT NOT NULL, customer_name TEXT NOT NULL,
                    customer_phone TEXT, subtotal TEXT NOT NULL, tax_amount TEXT NOT NULL,
                    grand_total TEXT NOT NULL, tax_rate TEXT NOT NULL,
                    user_id TEXT NOT NULL, created_at TEXT NOT NULL
                );
                """)
                cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {ITEM_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    invoice_id TEXT NOT NULL, position INTEGER NOT NULL,
                    line_id TEXT NOT NULL, product_id INTEGER NOT NULL,
                    name TEXT NOT NULL, unit_price TEXT NOT NULL, quantity INTEGER NOT NULL,
                    FOREIGN KEY (invoice_id) REFERENCES {INVOICE_TABLE} (id)
                );
                """)
                cursor.execute(f"CREATE INDEX IF NOT EXISTS idx_invoices_user_created ON {INVOICE_TABLE} (user_id, created_at);")
                cursor.execute(f"CREATE INDEX IF NOT EXISTS idx_items_invoice_id ON {ITEM_TABLE} (invoice_id);")
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Database initialization failed: {e}")

    def save(self, invoice: Invoice) -> str:
        if invoice.is_saved:
            return invoice.id

        persistence_id = secrets.token_hex(10)
        created_at = datetime.now(timezone.utc).isoformat(timespec='microseconds')
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(f"""
                    INSERT INTO {INVOICE_TABLE}
                    (id, invoice_number, invoice_date, customer_name, customer_phone,
                     subtotal, tax_amount, grand_total, tax_rate, user_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (persistence_id, invoice.invoice_number, invoice.date.isoformat(),
                      invoice.customer_name, invoice.customer_phone,
                      str(invoice.subtotal), str(invoice.tax_amount), str(invoice.grand_total),
                      str(invoice.tax_rate), invoice.user_id, created_at))
                cursor.executemany(f"""
                    INSERT INTO {ITEM_TABLE}
                    (invoice_id, position, line_id, product_id, name, unit_price, quantity)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, [(persistence_id, position, item.line_id, item.product_id, item.name,
                       str(item.unit_price), item.quantity)
                      for position, item in enumerate(invoice.items)])
                conn.commit()
        except sqlite3.Error as e:
            self.logger.error(f"Failed to save invoice {invoice.invoice_number}: {e}")
            raise PersistenceError(f"Failed to save the invoice. Please try again. ({e})")

        self.logger.info(f"Saved invoice {invoice.invoice_number} as {persistence_id}")
        return persistence_id

    def _local_time(self, stamp: str) -> datetime:
        created_at = datetime.fromisoformat(stamp)
        return created_at.astimezone(self.tz) if self.tz else created_at

    def _load_items(self, conn: sqlite3.Connection, persistence_id: str) -> tuple:
        rows = conn.execute(
            f"SELECT line_id, product_id, name, unit_price, quantity FROM {ITEM_TABLE} "
            f"WHERE invoice_id = ? ORDER BY position",
            (persistence_id,),
        ).fetchall()
        return tuple(
            LineItem(
                line_id=row['line_id'],
                product_id=row['product_id'],
                name=row['name'],
                unit_price=Decimal(row['unit_price']),
                quantity=row['quantity'],
            )
            for row in rows
        )

    def _row_to_invoice(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Invoice:
        return Invoice(
            id=row['id'],
            invoice_number=row['invoice_number'],
            date=datetime.fromisoformat(row['invoice_date']),
            customer_name=row['customer_name'],
            customer_phone=row['customer_phone'],
            items=self._load_items(conn, row['id']),
            subtotal=Decimal(row['subtotal']),
            tax_amount=Decimal(row['tax_amount']),
            grand_total=Decimal(row['grand_total']),
            tax_rate=Decimal(row['tax_rate']),
            user_id=row['user_id'],
            created_at=self._local_time(row['created_at']),
        )

    def list_invoices(self, user_id: str) -> List[Invoice]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT * FROM {INVOICE_TABLE} WHERE user_id = ? "
                    f"ORDER BY created_at DESC, rowid DESC",
                    (user_id,),
                ).fetchall()
                return [self._row_to_invoice(conn, row) for row in rows]
        except sqlite3.Error as e:
            self.logger.error(f"Failed to fetch invoice history for {user_id}: {e}")
            raise PersistenceError(f"Failed to fetch invoice history. ({e})")

    def get_invoice(self, persistence_id: str) -> Optional[Invoice]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT * FROM {INVOICE_TABLE} WHERE id = ?", (persistence_id,)
                ).fetchone()
                return self._row_to_invoice(conn, row) if row else None
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load invoice {persistence_id}. ({e})")
