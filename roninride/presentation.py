"""
Status lines for the rider and driver screens.

Pure functions of a client's current status and trip snapshot; nothing here
touches the store or changes state, so any front end can call them on every
redraw.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from roninride.domain.entities import Trip, UserProfile
from roninride.domain.enums import DriverStatus, RiderStatus


def format_currency(amount: float, currency: str = "USD") -> str:
    symbol = "$" if currency == "USD" else f"{currency} "
    return f"{symbol}{amount:,.2f}"


def format_rating(rating: float) -> str:
    return f"{rating:.1f}"


def format_timestamp(millis: int, tz: timezone = timezone.utc) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=tz).strftime("%Y-%m-%d %H:%M")


def describe_rider(status: RiderStatus, trip: Optional[Trip] = None) -> str:
    if status == RiderStatus.IDLE:
        return "Where to?"
    if status in (RiderStatus.REQUESTING, RiderStatus.AWAITING_DRIVER):
        if trip is not None and trip.driver is not None:
            return f"{trip.driver.name} is on their way!"
        return "Finding your driver..."
    if status == RiderStatus.ON_TRIP:
        return f"On trip to {trip.destination}" if trip else "On trip"
    if status == RiderStatus.PAYMENT:
        fare = format_currency(trip.fare) if trip else ""
        return f"Trip complete. Pay {fare}".rstrip()
    if status == RiderStatus.AWAITING_CASH_CONFIRMATION:
        return "Waiting for the driver to confirm your cash payment"
    return "Rate your driver"


def describe_driver(
    status: DriverStatus,
    trip: Optional[Trip] = None,
    rider: Optional[UserProfile] = None,
) -> str:
    rider_name = rider.name if rider else "your rider"
    if status == DriverStatus.OFFLINE:
        return "You are offline"
    if status == DriverStatus.ONLINE:
        return "Looking for ride requests..."
    if status == DriverStatus.REQUEST_RECEIVED and trip is not None:
        rating = f" ({format_rating(rider.rating)})" if rider else ""
        return (
            f"New request from {rider_name}{rating} to {trip.destination}, "
            f"{format_currency(trip.fare)}"
        )
    if status == DriverStatus.EN_ROUTE_TO_PICKUP:
        return f"Picking up {rider_name} at {trip.pickup}" if trip else "Picking up"
    if status == DriverStatus.ON_TRIP:
        return f"Driving {rider_name} to {trip.destination}" if trip else "On trip"
    if status == DriverStatus.TRIP_COMPLETED:
        return "Waiting for payment..."
    if status == DriverStatus.AWAITING_CASH_PAYMENT:
        fare = format_currency(trip.fare) if trip else "the fare"
        return f"Collect {fare} in cash"
    if status == DriverStatus.RATING_RIDER:
        return f"Rate {rider_name}"
    return "Looking for ride requests..."
