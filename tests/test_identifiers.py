"""Unit tests for id generation."""

from roninride.domain.identifiers import IdGenerator, TRIP_PREFIX, USER_PREFIX


def test_id_shape():
    ids = IdGenerator(clock=lambda: 1_700_000_000_000)
    assert ids.next_id(TRIP_PREFIX) == "trip_1700000000000"


def test_same_millisecond_does_not_collide():
    ids = IdGenerator(clock=lambda: 1000)
    assert [ids.next_id(USER_PREFIX) for _ in range(3)] == [
        "user_1000",
        "user_1001",
        "user_1002",
    ]


def test_clock_going_backwards_stays_monotonic():
    stamps = iter([5000, 4000])
    ids = IdGenerator(clock=lambda: next(stamps))
    assert ids.next_id("trip") == "trip_5000"
    assert ids.next_id("trip") == "trip_5001"


def test_taken_ids_are_skipped():
    ids = IdGenerator(clock=lambda: 1000)
    taken = {"trip_1000", "trip_1001"}
    assert ids.next_id("trip", taken) == "trip_1002"
