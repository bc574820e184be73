"""
Fixed-interval background polling.

One ``PeriodicTask`` per polling concern (matching, trip tracking, payment
tracking).  The task sleeps on a stop event with a timeout equal to the
interval, so stopping it takes effect immediately instead of after the
current sleep.  A failing callback is logged and retried on the next tick;
it never kills the loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from roninride.domain.errors import TransportError

logger = logging.getLogger(__name__)


class PeriodicTask:
    def __init__(
        self,
        name: str,
        callback: Callable[[], Awaitable[object]],
        interval_seconds: float,
        *,
        run_immediately: bool = False,
    ):
        self.name = name
        self.callback = callback
        self.interval = interval_seconds
        self.run_immediately = run_immediately
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running and not self._stop_event.is_set():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name=f"poll:{self.name}")
        logger.debug("Poller %s started (interval=%ss)", self.name, self.interval)

    def cancel(self) -> None:
        """Stop without waiting; safe to call from inside the callback."""
        if self._stop_event:
            self._stop_event.set()
        if self._task and self._task is not asyncio.current_task():
            self._task.cancel()

    async def stop(self) -> None:
        task = self._task
        self.cancel()
        if task and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.debug("Poller %s stopped", self.name)

    # ── Internals ─────────────────────────────────────────────────────

    async def _loop(self) -> None:
        assert self._stop_event is not None
        stop_event = self._stop_event
        if not self.run_immediately and await self._wait(stop_event):
            return
        while not stop_event.is_set():
            try:
                await self.callback()
            except TransportError as exc:
                logger.warning("Poll %s failed, retrying next interval: %s", self.name, exc)
            except Exception:
                logger.exception("Unhandled error in poll %s", self.name)
            if await self._wait(stop_event):
                break

    async def _wait(self, stop_event: asyncio.Event) -> bool:
        """Sleep one interval; ``True`` when stop was signalled meanwhile."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            return True
        except asyncio.TimeoutError:
            return False
