"""Unit tests for invoice number generation."""

import threading

from src.billing.numbering import InvoiceNumberGenerator


def test_format():
    generator = InvoiceNumberGenerator("GST", clock=lambda: 1718600000.5)
    assert generator.next_number() == "GST-1718600000500-0001"


def test_unique_within_same_millisecond():
    """A frozen clock still yields distinct numbers."""
    generator = InvoiceNumberGenerator("GST", clock=lambda: 1718600000.0)
    numbers = [generator.next_number() for _ in range(1000)]
    assert len(set(numbers)) == 1000


def test_unique_across_threads():
    generator = InvoiceNumberGenerator("INV", clock=lambda: 1718600000.0)
    results = []
    lock = threading.Lock()

    def worker():
        batch = [generator.next_number() for _ in range(200)]
        with lock:
            results.extend(batch)

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 1000
    assert len(set(results)) == 1000
    assert all(number.startswith("INV-") for number in results)
