"""Unit tests for the background polling loop and poller wiring."""

import asyncio

import pytest

from roninride.domain.errors import InvalidStateTransition, StoreError, TransportError
from roninride.domain.entities import validate_rating
from roninride.workers.poller import PeriodicTask


@pytest.mark.asyncio
async def test_runs_every_interval(eventually):
    calls = []

    async def tick():
        calls.append(1)

    task = PeriodicTask("test", tick, 0.01)
    task.start()
    await eventually(lambda: len(calls) >= 3)
    await task.stop()
    assert not task.running


@pytest.mark.asyncio
async def test_run_immediately_does_not_wait_first():
    calls = []

    async def tick():
        calls.append(1)

    task = PeriodicTask("test", tick, 60, run_immediately=True)
    task.start()
    await asyncio.sleep(0.05)
    await task.stop()
    assert calls == [1]


@pytest.mark.asyncio
async def test_waits_before_first_tick_by_default():
    calls = []

    async def tick():
        calls.append(1)

    task = PeriodicTask("test", tick, 60)
    task.start()
    await asyncio.sleep(0.05)
    await task.stop()
    assert calls == []


@pytest.mark.asyncio
async def test_failures_do_not_kill_the_loop(eventually):
    calls = []

    async def tick():
        calls.append(1)
        if len(calls) == 1:
            raise TransportError("store down")
        if len(calls) == 2:
            raise RuntimeError("bug")

    task = PeriodicTask("test", tick, 0.01)
    task.start()
    await eventually(lambda: len(calls) >= 3)
    assert task.running
    await task.stop()


@pytest.mark.asyncio
async def test_cancel_from_inside_callback(eventually):
    calls = []
    task = None

    async def tick():
        calls.append(1)
        task.cancel()

    task = PeriodicTask("test", tick, 0.01, run_immediately=True)
    task.start()
    await eventually(lambda: not task.running)
    assert calls == [1]


@pytest.mark.asyncio
async def test_restart_after_cancel(eventually):
    calls = []

    async def tick():
        calls.append(1)

    task = PeriodicTask("test", tick, 0.01, run_immediately=True)
    task.start()
    task.cancel()
    task.start()
    await eventually(lambda: len(calls) >= 2)
    await task.stop()


@pytest.mark.asyncio
async def test_start_twice_keeps_one_loop():
    async def tick():
        pass

    task = PeriodicTask("test", tick, 60)
    task.start()
    first = task._task
    task.start()
    assert task._task is first
    await task.stop()


class TestValidateRating:
    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_accepts_one_to_five(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 6, -1, 3.5, "4", None, True])
    def test_rejects_everything_else(self, rating):
        with pytest.raises(ValueError):
            validate_rating(rating)


def test_invalid_state_transition_is_not_a_store_error():
    assert not issubclass(InvalidStateTransition, StoreError)
