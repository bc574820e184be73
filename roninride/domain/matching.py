"""
Driver Matching Rules
=====================

1. **Discovery** -- a driver asks for the newest ``REQUESTED`` trip that is
   not in its local exclusion set.
2. **Claim**     -- the accept write is the only exclusivity guard; a lost
   race surfaces as ``ConflictError`` and the driver resumes searching.
3. **Snooze**    -- a declined trip is hidden from that driver for a fixed
   cool-down, after which it becomes eligible again if still open.

Ordering
--------
Newest first by ``createdAt``.  Creation stamps come from unsynchronised
client clocks, so equal stamps are possible; ties are broken by trip id
(descending) to keep the choice deterministic for every driver.

Complexity: O(N) per discovery, N = trips in the document.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, Optional

from .entities import Trip


def select_open_trip(
    trips: Iterable[Trip], exclude_ids: Iterable[str] = ()
) -> Optional[Trip]:
    """Return the newest open trip whose id is not excluded, or ``None``."""
    excluded = set(exclude_ids)
    candidates = [t for t in trips if t.is_open and t.id not in excluded]
    if not candidates:
        return None
    return max(candidates, key=lambda t: (t.created_at, t.id))


def trips_for_user(trips: Iterable[Trip], user_id: str) -> list[Trip]:
    """Trips where *user_id* is the rider or the driver, newest first."""
    mine = [t for t in trips if t.rider_id == user_id or t.driver_id == user_id]
    return sorted(mine, key=lambda t: (t.created_at, t.id), reverse=True)


class SnoozeList:
    """Driver-local, time-bounded suppression of declined trips.

    Never persisted; each driver process keeps its own.
    """

    def __init__(
        self,
        duration_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.duration = duration_seconds
        self._clock = clock
        self._expiry: dict[str, float] = {}

    def snooze(self, trip_id: str) -> None:
        self._expiry[trip_id] = self._clock() + self.duration

    def active(self) -> set[str]:
        """Ids still snoozed; expired entries are dropped on the way."""
        now = self._clock()
        self._expiry = {k: v for k, v in self._expiry.items() if v > now}
        return set(self._expiry)

    def __contains__(self, trip_id: str) -> bool:
        return trip_id in self.active()

    def __len__(self) -> int:
        return len(self.active())
