"""Invoice number generation."""

import threading
import time
from typing import Callable


class InvoiceNumberGenerator:
    """
    Produces numbers like ``GST-1718600000123-0007``.

    The millisecond timestamp keeps numbers readable and roughly sortable; the
    process-wide sequence keeps two bills finalized within the same millisecond
    apart. One generator is shared by every browser session of the app, so the
    sequence is guarded by a lock.
    """

    def __init__(self, prefix: str = "GST", clock: Callable[[], float] = time.time):
        self.prefix = prefix
        self._clock = clock
        self._lock = threading.Lock()
        self._sequence = 0

    def next_number(self) -> str:
        with self._lock:
            self._sequence += 1
            sequence = self._sequence
            millis = int(self._clock() * 1000)
        return f"{self.prefix}-{millis}-{sequence:04d}"
