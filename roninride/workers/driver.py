"""
Driver client
=============

OFFLINE -> ONLINE -> REQUEST_RECEIVED -> EN_ROUTE_TO_PICKUP -> ON_TRIP
        -> TRIP_COMPLETED -> AWAITING_CASH_PAYMENT | RATING_RIDER -> ONLINE

Matching
--------
While ONLINE the driver polls for the newest open trip it has not snoozed
(immediately on going online, then every ``match_poll_interval_seconds``).
Accepting races every other driver through the store; losing the race is
not an error for the driver, the offer is simply dropped and the search
resumes.  Declining snoozes the trip for ``snooze_seconds``.

Settlement
----------
While TRIP_COMPLETED the driver polls the trip's transaction: a digital
payment moves straight to RATING_RIDER, a pending cash handshake moves to
AWAITING_CASH_PAYMENT until the driver confirms the cash by hand.
"""

from __future__ import annotations

import logging
from typing import Optional

from roninride.config import settings
from roninride.domain.entities import (
    Trip,
    User,
    UserProfile,
    Vehicle,
    validate_rating,
)
from roninride.domain.enums import (
    DriverStatus,
    DRIVER_TRANSITIONS,
    TripStatus,
    VehicleType,
)
from roninride.domain.errors import (
    ConflictError,
    NotFoundError,
    StoreError,
    TransportError,
)
from roninride.domain.matching import SnoozeList
from roninride.domain.settlement import driver_settlement_step
from roninride.infrastructure.accessor import StoreAccessor

from .base import ClientStateMachine
from .poller import PeriodicTask

logger = logging.getLogger(__name__)

DEFAULT_VEHICLE = Vehicle(
    make="Honda",
    model="Accord",
    license_plate="DRV-456",
    type=VehicleType.HOME_CAR,
)


class DriverStateMachine(ClientStateMachine[DriverStatus]):
    role = "driver"
    transitions = DRIVER_TRANSITIONS
    POLLED_STATES = {
        DriverStatus.ONLINE: "matching",
        DriverStatus.TRIP_COMPLETED: "settlement",
    }

    def __init__(
        self,
        accessor: StoreAccessor,
        user: User,
        vehicle: Vehicle = DEFAULT_VEHICLE,
        *,
        snoozed: SnoozeList | None = None,
        match_poll_interval: float = settings.match_poll_interval_seconds,
        payment_poll_interval: float = settings.payment_poll_interval_seconds,
    ):
        super().__init__(DriverStatus.OFFLINE, user.id)
        self.accessor = accessor
        self.user = user
        self.vehicle = vehicle
        self.snoozed = snoozed or SnoozeList(settings.snooze_seconds)
        self.trip: Optional[Trip] = None
        self.rider: Optional[UserProfile] = None
        self.pollers = {
            "matching": PeriodicTask(
                "driver-matching",
                self.check_for_trip,
                match_poll_interval,
                run_immediately=True,
            ),
            "settlement": PeriodicTask(
                "driver-settlement", self.check_settlement, payment_poll_interval
            ),
        }

    # ── Availability ──────────────────────────────────────────────────

    async def go_online(self) -> None:
        self._transition(DriverStatus.ONLINE)

    async def go_offline(self) -> None:
        self._require(DriverStatus.ONLINE, DriverStatus.REQUEST_RECEIVED)
        self.trip = None
        self.rider = None
        self._transition(DriverStatus.OFFLINE)

    # ── Matching ──────────────────────────────────────────────────────

    async def check_for_trip(self) -> Optional[Trip]:
        """One matching tick; returns the offered trip, if any."""
        if self.status != DriverStatus.ONLINE:
            return None
        try:
            trip = await self.accessor.find_open_trip(self.snoozed.active())
            if trip is None:
                return None
            rider = await self.accessor.get_user_by_id(trip.rider_id)
        except TransportError as exc:
            logger.warning("Polling for rides failed: %s", exc)
            return None
        if rider is None or self.status != DriverStatus.ONLINE:
            return None
        self.trip = trip
        self.rider = rider.profile()
        self._transition(DriverStatus.REQUEST_RECEIVED)
        return trip

    async def accept(self) -> bool:
        """Claim the offered trip; ``False`` when another driver got it first."""
        self._require(DriverStatus.REQUEST_RECEIVED)
        try:
            trip = await self.accessor.accept_trip(self.trip.id, self.user, self.vehicle)
        except (ConflictError, NotFoundError) as exc:
            logger.info("Trip %s no longer available: %s", self.trip.id, exc)
            self._reset()
            return False
        self.trip = trip
        self._transition(DriverStatus.EN_ROUTE_TO_PICKUP)
        return True

    async def decline(self) -> None:
        self._require(DriverStatus.REQUEST_RECEIVED)
        self.snoozed.snooze(self.trip.id)
        self._reset()

    # ── Ride ──────────────────────────────────────────────────────────

    async def pick_up(self) -> Trip:
        self._require(DriverStatus.EN_ROUTE_TO_PICKUP)
        self.trip = await self.accessor.update_trip_status(self.trip.id, TripStatus.ON_TRIP)
        self._transition(DriverStatus.ON_TRIP)
        return self.trip

    async def complete_trip(self) -> Trip:
        self._require(DriverStatus.ON_TRIP)
        self.trip = await self.accessor.update_trip_status(
            self.trip.id, TripStatus.COMPLETED
        )
        self._transition(DriverStatus.TRIP_COMPLETED)
        return self.trip

    # ── Settlement ────────────────────────────────────────────────────

    async def check_settlement(self) -> None:
        """One settlement tick while waiting for the rider to pay."""
        if self.status != DriverStatus.TRIP_COMPLETED or self.trip is None:
            return
        trip_id = self.trip.id
        try:
            transaction = await self.accessor.get_transaction_by_trip_id(trip_id)
            latest = await self.accessor.get_trip_by_id(trip_id)
        except TransportError as exc:
            logger.warning("Payment poll for %s failed: %s", trip_id, exc)
            return
        if self.status != DriverStatus.TRIP_COMPLETED:
            return
        next_status = driver_settlement_step(latest, transaction)
        if next_status is not None:
            if latest is not None:
                self.trip = latest
            self._transition(next_status)

    async def confirm_cash(self) -> Trip:
        self._require(DriverStatus.AWAITING_CASH_PAYMENT)
        self.trip = await self.accessor.confirm_cash_payment(self.trip.id)
        self._transition(DriverStatus.RATING_RIDER)
        return self.trip

    # ── Rating ────────────────────────────────────────────────────────

    async def submit_rating(self, rating: int) -> None:
        """Rate the rider, then go back online whatever the outcome."""
        self._require(DriverStatus.RATING_RIDER)
        validate_rating(rating)
        rider_id = self.trip.rider_id if self.trip else None
        try:
            if rider_id:
                await self.accessor.update_user_rating(rider_id, rating)
        except StoreError as exc:
            logger.warning("Failed to submit rating for %s: %s", rider_id, exc)
        finally:
            self._reset()

    def _reset(self) -> None:
        self.trip = None
        self.rider = None
        self._transition(DriverStatus.ONLINE)
