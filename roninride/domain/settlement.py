"""
Settlement rules.

Cash needs a manual handshake: the rider flags ``cashPendingAt`` on the trip,
the driver answers with ``cashConfirmedAt`` once the money is in hand.  Any
other method is treated as settled the moment its transaction exists.  Both
sides discover the counterpart's move by polling the store.
"""

from __future__ import annotations

from typing import Optional

from .entities import Transaction, Trip
from .enums import DriverStatus, PaymentMethod


def is_digital(method: PaymentMethod) -> bool:
    return method != PaymentMethod.CASH


def driver_settlement_step(
    trip: Optional[Trip], transaction: Optional[Transaction]
) -> Optional[DriverStatus]:
    """Next driver status while waiting on payment, or ``None`` to keep waiting.

    A pending cash handshake wins over the digital rule.
    """
    cash_pending = (trip is not None and trip.cash_pending_at is not None) or (
        transaction is not None and transaction.method == PaymentMethod.CASH
    )
    if cash_pending:
        return DriverStatus.AWAITING_CASH_PAYMENT
    if transaction is not None and is_digital(transaction.method):
        return DriverStatus.RATING_RIDER
    return None


def cash_confirmed(trip: Optional[Trip]) -> bool:
    return trip is not None and trip.cash_confirmed_at is not None
