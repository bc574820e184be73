"""
Domain entities with business logic.

Entities mirror the shared document one to one and serialise with camelCase
keys (``riderId``, ``numRatings`` ...), which is the wire format every client
of a session agrees on.

Patterns used
-------------
- **State Pattern** on ``Trip``: enforces valid lifecycle transitions
  (REQUESTED -> DRIVER_ASSIGNED -> [EN_ROUTE_TO_PICKUP] -> ON_TRIP -> COMPLETED,
  or REQUESTED -> CANCELLED).
- ``User.apply_rating`` keeps the running-mean invariant in one place.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import PaymentMethod, TripStatus, TRIP_TRANSITIONS, VehicleType
from .errors import InvalidStateTransition


class _DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ── Value Object ──────────────────────────────────────────────────────


class Vehicle(_DocumentModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    make: str
    model: str
    license_plate: str
    type: VehicleType = VehicleType.HOME_CAR


MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError(f"Rating must be an integer, got {rating!r}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(
            f"Rating must be from {MIN_RATING} to {MAX_RATING}, got {rating!r}"
        )
    return rating


# ── Entities ──────────────────────────────────────────────────────────


class UserProfile(_DocumentModel):
    """Public view of a user, safe to embed into trip records."""

    id: str
    name: str
    email: str
    avatar_url: str = ""
    rating: float = 5.0
    num_ratings: int = Field(0, ge=0)


class User(UserProfile):
    secret: str

    def profile(self) -> UserProfile:
        return UserProfile.model_validate(self.model_dump(exclude={"secret"}))

    def apply_rating(self, new_rating: int) -> None:
        """Fold *new_rating* (1 to 5) into the running mean."""
        validate_rating(new_rating)
        total = self.rating * self.num_ratings
        self.num_ratings += 1
        self.rating = (total + new_rating) / self.num_ratings


class Trip(_DocumentModel):
    id: str
    rider_id: str
    driver_id: Optional[str] = None
    driver: Optional[UserProfile] = None
    vehicle: Optional[Vehicle] = None
    pickup: str
    destination: str
    fare: float
    status: TripStatus = TripStatus.REQUESTED
    created_at: int
    cash_pending_at: Optional[int] = None
    cash_confirmed_at: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.status == TripStatus.REQUESTED

    def transition_to(self, new_status: TripStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = TRIP_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition trip from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def assign(self, driver: UserProfile, vehicle: Vehicle) -> None:
        self.transition_to(TripStatus.DRIVER_ASSIGNED)
        self.driver_id = driver.id
        self.driver = UserProfile.model_validate(driver.model_dump(exclude={"secret"}))
        self.vehicle = vehicle


class Transaction(_DocumentModel):
    id: str
    trip_id: str
    user_id: str
    amount: float
    method: PaymentMethod
    timestamp: int


# ── Aggregate ─────────────────────────────────────────────────────────


class MarketplaceDocument(_DocumentModel):
    """The whole shared document of one session."""

    users: list[User] = Field(default_factory=list)
    trips: list[Trip] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def find_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users if u.email == email), None)

    def find_trip(self, trip_id: str) -> Optional[Trip]:
        return next((t for t in self.trips if t.id == trip_id), None)

    def find_transaction_for_trip(self, trip_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.trip_id == trip_id), None)

    def taken_ids(self) -> set[str]:
        return (
            {u.id for u in self.users}
            | {t.id for t in self.trips}
            | {t.id for t in self.transactions}
        )
