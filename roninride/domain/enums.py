"""Domain enumerations and state-transition rules."""

import enum


class TripStatus(str, enum.Enum):
    REQUESTED = "REQUESTED"
    DRIVER_ASSIGNED = "DRIVER_ASSIGNED"
    EN_ROUTE_TO_PICKUP = "EN_ROUTE_TO_PICKUP"
    ON_TRIP = "ON_TRIP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# State machine: maps current status -> set of valid next statuses
TRIP_TRANSITIONS: dict[TripStatus, set[TripStatus]] = {
    TripStatus.REQUESTED: {TripStatus.DRIVER_ASSIGNED, TripStatus.CANCELLED},
    TripStatus.DRIVER_ASSIGNED: {TripStatus.EN_ROUTE_TO_PICKUP, TripStatus.ON_TRIP},
    TripStatus.EN_ROUTE_TO_PICKUP: {TripStatus.ON_TRIP},
    TripStatus.ON_TRIP: {TripStatus.COMPLETED},
    TripStatus.COMPLETED: set(),
    TripStatus.CANCELLED: set(),
}


class RiderStatus(str, enum.Enum):
    IDLE = "IDLE"
    REQUESTING = "REQUESTING"
    AWAITING_DRIVER = "AWAITING_DRIVER"
    ON_TRIP = "ON_TRIP"
    PAYMENT = "PAYMENT"
    AWAITING_CASH_CONFIRMATION = "AWAITING_CASH_CONFIRMATION"
    RATING_DRIVER = "RATING_DRIVER"


RIDER_TRANSITIONS: dict[RiderStatus, set[RiderStatus]] = {
    RiderStatus.IDLE: {RiderStatus.REQUESTING},
    RiderStatus.REQUESTING: {RiderStatus.AWAITING_DRIVER, RiderStatus.IDLE},
    RiderStatus.AWAITING_DRIVER: {
        RiderStatus.ON_TRIP,
        RiderStatus.PAYMENT,
        RiderStatus.IDLE,
    },
    RiderStatus.ON_TRIP: {RiderStatus.PAYMENT, RiderStatus.IDLE},
    RiderStatus.PAYMENT: {
        RiderStatus.AWAITING_CASH_CONFIRMATION,
        RiderStatus.RATING_DRIVER,
    },
    RiderStatus.AWAITING_CASH_CONFIRMATION: {RiderStatus.RATING_DRIVER},
    RiderStatus.RATING_DRIVER: {RiderStatus.IDLE},
}


class DriverStatus(str, enum.Enum):
    OFFLINE = "OFFLINE"
    ONLINE = "ONLINE"
    REQUEST_RECEIVED = "REQUEST_RECEIVED"
    EN_ROUTE_TO_PICKUP = "EN_ROUTE_TO_PICKUP"
    ON_TRIP = "ON_TRIP"
    TRIP_COMPLETED = "TRIP_COMPLETED"
    AWAITING_CASH_PAYMENT = "AWAITING_CASH_PAYMENT"
    RATING_RIDER = "RATING_RIDER"


DRIVER_TRANSITIONS: dict[DriverStatus, set[DriverStatus]] = {
    DriverStatus.OFFLINE: {DriverStatus.ONLINE},
    DriverStatus.ONLINE: {DriverStatus.OFFLINE, DriverStatus.REQUEST_RECEIVED},
    DriverStatus.REQUEST_RECEIVED: {
        DriverStatus.ONLINE,
        DriverStatus.OFFLINE,
        DriverStatus.EN_ROUTE_TO_PICKUP,
    },
    DriverStatus.EN_ROUTE_TO_PICKUP: {DriverStatus.ON_TRIP},
    DriverStatus.ON_TRIP: {DriverStatus.TRIP_COMPLETED},
    DriverStatus.TRIP_COMPLETED: {
        DriverStatus.AWAITING_CASH_PAYMENT,
        DriverStatus.RATING_RIDER,
    },
    DriverStatus.AWAITING_CASH_PAYMENT: {DriverStatus.RATING_RIDER},
    DriverStatus.RATING_RIDER: {DriverStatus.ONLINE},
}


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    PAYPAL = "PAYPAL"
    APPLE_PAY = "APPLE_PAY"
    GOOGLE_PAY = "GOOGLE_PAY"


class VehicleType(str, enum.Enum):
    TAXI = "TAXI"
    HOME_CAR = "HOME_CAR"
    PREMIUM = "PREMIUM"
