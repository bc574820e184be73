"""
Rider client
============

IDLE -> REQUESTING -> AWAITING_DRIVER -> ON_TRIP -> PAYMENT
     -> AWAITING_CASH_CONFIRMATION | RATING_DRIVER -> IDLE

Escapes: cancel while AWAITING_DRIVER, and a remotely CANCELLED trip seen by
the tracking poll, both return to IDLE.

Polls
-----
* ``trip`` (AWAITING_DRIVER, ON_TRIP): re-read the trip, follow its status.
* ``cash`` (AWAITING_CASH_CONFIRMATION): wait for the driver's
  ``cashConfirmedAt`` on the trip.
"""

from __future__ import annotations

import logging
from typing import Optional

from roninride.config import settings
from roninride.domain.entities import Transaction, Trip, User, validate_rating
from roninride.domain.enums import (
    PaymentMethod,
    RiderStatus,
    RIDER_TRANSITIONS,
    TripStatus,
    VehicleType,
)
from roninride.domain.errors import ConflictError, StoreError, TransportError
from roninride.domain.pricing import PricingStrategy, RandomRangePricing
from roninride.domain.settlement import cash_confirmed, is_digital
from roninride.infrastructure.accessor import StoreAccessor

from .base import ClientStateMachine
from .poller import PeriodicTask

logger = logging.getLogger(__name__)

TRACKED_STATES = (RiderStatus.AWAITING_DRIVER, RiderStatus.ON_TRIP)


class RiderStateMachine(ClientStateMachine[RiderStatus]):
    role = "rider"
    transitions = RIDER_TRANSITIONS
    POLLED_STATES = {
        RiderStatus.AWAITING_DRIVER: "trip",
        RiderStatus.ON_TRIP: "trip",
        RiderStatus.AWAITING_CASH_CONFIRMATION: "cash",
    }

    def __init__(
        self,
        accessor: StoreAccessor,
        user: User,
        *,
        pricing: PricingStrategy | None = None,
        pickup: str = settings.default_pickup,
        trip_poll_interval: float = settings.trip_poll_interval_seconds,
        cash_poll_interval: float = settings.payment_poll_interval_seconds,
    ):
        super().__init__(RiderStatus.IDLE, user.id)
        self.accessor = accessor
        self.user = user
        self.pricing = pricing or RandomRangePricing(settings.fare_min, settings.fare_max)
        self.pickup = pickup
        self.trip: Optional[Trip] = None
        self.pollers = {
            "trip": PeriodicTask("rider-trip", self.check_trip, trip_poll_interval),
            "cash": PeriodicTask(
                "rider-cash", self.check_cash_confirmation, cash_poll_interval
            ),
        }

    # ── Request / cancel ──────────────────────────────────────────────

    async def request_ride(
        self, destination: str, vehicle_type: VehicleType = VehicleType.HOME_CAR
    ) -> Trip:
        if not destination:
            raise ValueError("A destination is required")
        self._transition(RiderStatus.REQUESTING)
        fare = self.pricing.quote(destination, vehicle_type)
        try:
            trip = await self.accessor.create_trip(
                self.user.id, self.pickup, destination, fare
            )
        except StoreError:
            self._transition(RiderStatus.IDLE)
            raise
        self.trip = trip
        self._transition(RiderStatus.AWAITING_DRIVER)
        return trip

    async def cancel_request(self) -> bool:
        """Cancel the pending request; ``False`` when a driver claimed it first."""
        self._require(RiderStatus.AWAITING_DRIVER)
        trip_id = self.trip.id if self.trip is not None else None
        if trip_id is not None:
            try:
                await self.accessor.cancel_trip(trip_id)
            except ConflictError:
                latest = await self.accessor.get_trip_by_id(trip_id)
                logger.info("Cancel of %s refused, trip moved on", trip_id)
                if latest is not None and latest.status != TripStatus.CANCELLED:
                    self._follow(latest)
                    return False
        # a tracking tick may already have seen the cancellation
        if self.status in TRACKED_STATES:
            self.trip = None
            self._transition(RiderStatus.IDLE)
        return True

    # ── Tracking ──────────────────────────────────────────────────────

    async def check_trip(self) -> None:
        """One tracking tick: pull the trip and follow its remote status."""
        if self.status not in TRACKED_STATES or self.trip is None:
            return
        trip_id = self.trip.id
        try:
            latest = await self.accessor.get_trip_by_id(trip_id)
        except TransportError as exc:
            logger.warning("Trip poll for %s failed: %s", trip_id, exc)
            return
        # the rider may have acted while the read was in flight
        if latest is None or self.trip is None or self.trip.id != trip_id:
            return
        self._follow(latest)

    def _follow(self, latest: Trip) -> None:
        """Apply a remote trip status; a no-op once the rider left tracking."""
        if self.status not in TRACKED_STATES:
            return
        if latest != self.trip:
            self.trip = latest
        if latest.status == TripStatus.CANCELLED:
            self.trip = None
            self._transition(RiderStatus.IDLE)
        elif latest.status == TripStatus.COMPLETED:
            self._transition(RiderStatus.PAYMENT)
        elif latest.status == TripStatus.ON_TRIP and self.status != RiderStatus.ON_TRIP:
            self._transition(RiderStatus.ON_TRIP)

    # ── Settlement ────────────────────────────────────────────────────

    async def select_payment(self, method: PaymentMethod) -> Transaction:
        self._require(RiderStatus.PAYMENT)
        transaction = await self.accessor.create_transaction(self.trip, method)
        if is_digital(method):
            self._transition(RiderStatus.RATING_DRIVER)
        else:
            self.trip = await self.accessor.request_cash_confirmation(self.trip.id)
            self._transition(RiderStatus.AWAITING_CASH_CONFIRMATION)
        return transaction

    async def check_cash_confirmation(self) -> None:
        if self.status != RiderStatus.AWAITING_CASH_CONFIRMATION or self.trip is None:
            return
        try:
            latest = await self.accessor.get_trip_by_id(self.trip.id)
        except TransportError as exc:
            logger.warning("Cash confirmation poll failed: %s", exc)
            return
        if (
            cash_confirmed(latest)
            and self.status == RiderStatus.AWAITING_CASH_CONFIRMATION
        ):
            self.trip = latest
            self._transition(RiderStatus.RATING_DRIVER)

    # ── Rating ────────────────────────────────────────────────────────

    async def submit_rating(self, rating: int) -> None:
        """Rate the driver, then drop the trip whatever the outcome."""
        self._require(RiderStatus.RATING_DRIVER)
        validate_rating(rating)
        driver_id = self.trip.driver_id if self.trip else None
        try:
            if driver_id:
                await self.accessor.update_user_rating(driver_id, rating)
        except StoreError as exc:
            logger.warning("Failed to submit rating for %s: %s", driver_id, exc)
        finally:
            self.trip = None
            self._transition(RiderStatus.IDLE)
