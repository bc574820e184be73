"""Unit tests for the driver-side settlement rules."""

import pytest

from roninride.domain.entities import Transaction, Trip
from roninride.domain.enums import DriverStatus, PaymentMethod, TripStatus
from roninride.domain.settlement import cash_confirmed, driver_settlement_step, is_digital


def _trip(**kwargs) -> Trip:
    return Trip(
        id="trip_1",
        rider_id="user_1",
        pickup="P",
        destination="D",
        fare=25.0,
        status=TripStatus.COMPLETED,
        created_at=1,
        **kwargs,
    )


def _txn(method: PaymentMethod) -> Transaction:
    return Transaction(
        id="txn_1", trip_id="trip_1", user_id="user_1", amount=25.0, method=method, timestamp=2
    )


@pytest.mark.parametrize("method", [m for m in PaymentMethod if m != PaymentMethod.CASH])
def test_digital_methods(method):
    assert is_digital(method)
    assert driver_settlement_step(_trip(), _txn(method)) == DriverStatus.RATING_RIDER


def test_cash_is_not_digital():
    assert not is_digital(PaymentMethod.CASH)


def test_nothing_paid_yet_keeps_waiting():
    assert driver_settlement_step(_trip(), None) is None
    assert driver_settlement_step(None, None) is None


def test_cash_transaction_needs_confirmation():
    step = driver_settlement_step(_trip(), _txn(PaymentMethod.CASH))
    assert step == DriverStatus.AWAITING_CASH_PAYMENT


def test_pending_cash_flag_wins():
    trip = _trip(cash_pending_at=10)
    assert driver_settlement_step(trip, None) == DriverStatus.AWAITING_CASH_PAYMENT


def test_cash_confirmed():
    assert not cash_confirmed(None)
    assert not cash_confirmed(_trip(cash_pending_at=10))
    assert cash_confirmed(_trip(cash_pending_at=10, cash_confirmed_at=20))
