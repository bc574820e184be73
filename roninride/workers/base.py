"""
Shared plumbing for the rider and driver clients.

Each client is an explicit state machine: the current status plus a
transition table.  Polling concerns are attached to statuses through
``POLLED_STATES``; entering a status starts its poller, leaving it stops the
poller, so a client only ever runs the polls its status needs.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Generic, TypeVar

from roninride.domain.errors import InvalidStateTransition

from .poller import PeriodicTask

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Enum)


class ClientStateMachine(Generic[S]):
    role: str = "client"
    transitions: dict = {}
    POLLED_STATES: dict = {}

    def __init__(self, initial: S, owner_id: str):
        self.status: S = initial
        self.owner_id = owner_id
        self.pollers: dict[str, PeriodicTask] = {}
        self._polling = False

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def start(self) -> None:
        """Run the pollers of the current status (and of every later one)."""
        self._polling = True
        self._sync_pollers()

    async def stop(self) -> None:
        self._polling = False
        for task in self.pollers.values():
            await task.stop()

    # ── Transitions ───────────────────────────────────────────────────

    def _require(self, *statuses: S) -> None:
        if self.status not in statuses:
            raise InvalidStateTransition(
                f"{self.role} action not allowed while {self.status.value}"
            )

    def _transition(self, new_status: S) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = self.transitions.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition {self.role} from {self.status.value} "
                f"to {new_status.value}"
            )
        old = self.status
        self.status = new_status
        logger.info(
            "%s %s: %s -> %s", self.role, self.owner_id, old.value, new_status.value
        )
        self._sync_pollers()

    def _sync_pollers(self) -> None:
        wanted = self.POLLED_STATES.get(self.status)
        for name, task in self.pollers.items():
            if name != wanted:
                task.cancel()
        if self._polling and wanted is not None:
            self.pollers[wanted].start()
