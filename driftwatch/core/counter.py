"""Thread-safe drift counter."""

from __future__ import annotations

import threading


class DriftCounter:
    """Monotonic counter shared by every worker of one run.

    Increments are guarded so the counter stays exact even if work functions
    are pushed onto threads with ``asyncio.to_thread``.
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
