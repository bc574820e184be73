"""
Identifier generation.

Ids keep the ``<prefix>_<epoch-millis>`` shape that every client of a
session already understands, but two ids created in the same millisecond no
longer collide: the generator never hands out a timestamp below the last one
it issued, and it steps past ids already present in the document.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Container

USER_PREFIX = "user"
TRIP_PREFIX = "trip"
TRANSACTION_PREFIX = "txn"


def now_millis() -> int:
    return time.time_ns() // 1_000_000


class IdGenerator:
    def __init__(self, clock: Callable[[], int] = now_millis):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self, prefix: str, taken: Container[str] = ()) -> str:
        with self._lock:
            stamp = max(self._clock(), self._last + 1)
            while f"{prefix}_{stamp}" in taken:
                stamp += 1
            self._last = stamp
        return f"{prefix}_{stamp}"


default_id_generator = IdGenerator()
