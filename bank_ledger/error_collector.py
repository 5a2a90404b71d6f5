"""
Thread-safe collector for errors raised by batch workers.

Holds two independent pieces of state: the messages of the current batch
and a lifetime counter. Clearing one never resets the other.
"""

import threading
from typing import List


class ErrorCollector:
    """Accumulates error messages from concurrent tasks"""

    def __init__(self):
        self._errors: List[str] = []
        self._lifetime_count = 0
        self._lock = threading.Lock()

    def add_error(self, message: str) -> None:
        """Record one task failure"""
        with self._lock:
            self._errors.append(message)
            self._lifetime_count += 1

    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    @property
    def errors(self) -> List[str]:
        """Copy of the current batch's messages"""
        with self._lock:
            return list(self._errors)

    def drain(self) -> List[str]:
        """Return the current messages and clear them"""
        with self._lock:
            drained = self._errors
            self._errors = []
            return drained

    def clear(self) -> None:
        """Drop current messages; the lifetime count is kept"""
        with self._lock:
            self._errors = []

    @property
    def lifetime_count(self) -> int:
        """Errors recorded since creation or the last reset_lifetime_count()"""
        with self._lock:
            return self._lifetime_count

    def reset_lifetime_count(self) -> None:
        """Zero the lifetime counter; current messages are kept"""
        with self._lock:
            self._lifetime_count = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)
