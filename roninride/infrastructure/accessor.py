"""
Store Accessor -- the only component allowed to talk to the document store.

Every operation reads the whole session document, applies a pure change and
replaces the whole document.  Replaces are conditional on the version that
was read (``If-Match``); when another client wrote in between, the store
answers 412 and the change is re-applied to a fresh read.  Preconditions
such as "trip still REQUESTED" are therefore checked against the exact
version that gets replaced, which is what keeps a trip from being claimed by
two drivers.

Errors
------
* ``ConflictError``  -- trip already claimed / cancelled, email taken.
* ``AuthError``      -- bad credentials.
* ``NotFoundError``  -- unknown user or trip id.
* ``TransportError`` -- store unreachable, malformed document, or too many
  consecutive stale writes.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, TypeVar

import bcrypt
from pydantic import ValidationError

from roninride.config import settings
from roninride.domain.entities import (
    MarketplaceDocument,
    Transaction,
    Trip,
    User,
    Vehicle,
    validate_rating,
)
from roninride.domain.enums import PaymentMethod, TripStatus, TRIP_TRANSITIONS
from roninride.domain.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    TransportError,
)
from roninride.domain.identifiers import (
    TRANSACTION_PREFIX,
    TRIP_PREFIX,
    USER_PREFIX,
    IdGenerator,
    default_id_generator,
    now_millis,
)
from roninride.domain.matching import select_open_trip, trips_for_user

from .store_client import DocumentStoreClient, PreconditionFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")

DOCUMENT_COLLECTIONS = ("users", "trips", "transactions")
AVATAR_URL = "https://i.pravatar.cc/150?u={user_id}"


class StoreAccessor:
    def __init__(
        self,
        store: DocumentStoreClient,
        session_id: str,
        *,
        ids: IdGenerator = default_id_generator,
        clock: Callable[[], int] = now_millis,
        retry_attempts: int = settings.write_retry_attempts,
        bcrypt_rounds: int = settings.bcrypt_rounds,
    ):
        self.store = store
        self.session_id = session_id
        self.ids = ids
        self.clock = clock
        self.retry_attempts = max(1, retry_attempts)
        self.bcrypt_rounds = bcrypt_rounds

    # ── Users ─────────────────────────────────────────────────────────

    async def register_user(self, name: str, email: str, secret: str) -> User:
        hashed = bcrypt.hashpw(
            secret.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds)
        ).decode("utf-8")

        def change(doc: MarketplaceDocument) -> User:
            if doc.find_user_by_email(email) is not None:
                raise ConflictError("Email already in use.")
            user_id = self.ids.next_id(USER_PREFIX, doc.taken_ids())
            user = User(
                id=user_id,
                name=name,
                email=email,
                secret=hashed,
                avatar_url=AVATAR_URL.format(user_id=user_id),
            )
            doc.users.append(user)
            return user

        user = await self._mutate(change)
        logger.info("Registered user %s", user.id)
        return user

    async def login_user(self, email: str, secret: str) -> User:
        doc = await self._load()
        user = doc.find_user_by_email(email)
        if user is None or not _secret_matches(secret, user.secret):
            raise AuthError("Invalid email or password.")
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        return (await self._load()).find_user(user_id)

    async def update_user_rating(self, user_id: str, new_rating: int) -> User:
        """Fold a rating into the running mean; ``ValueError`` unless an int 1..5."""
        validate_rating(new_rating)

        def change(doc: MarketplaceDocument) -> User:
            user = doc.find_user(user_id)
            if user is None:
                raise NotFoundError("User not found")
            user.apply_rating(new_rating)
            return user

        return await self._mutate(change)

    # ── Trips ─────────────────────────────────────────────────────────

    async def create_trip(
        self, rider_id: str, pickup: str, destination: str, fare: float
    ) -> Trip:
        def change(doc: MarketplaceDocument) -> Trip:
            trip = Trip(
                id=self.ids.next_id(TRIP_PREFIX, doc.taken_ids()),
                rider_id=rider_id,
                pickup=pickup,
                destination=destination,
                fare=fare,
                status=TripStatus.REQUESTED,
                created_at=self.clock(),
            )
            doc.trips.append(trip)
            return trip

        trip = await self._mutate(change)
        logger.info("Trip %s requested by %s (fare %.2f)", trip.id, rider_id, fare)
        return trip

    async def get_trip_by_id(self, trip_id: str) -> Optional[Trip]:
        return (await self._load()).find_trip(trip_id)

    async def find_open_trip(self, exclude_ids: Iterable[str] = ()) -> Optional[Trip]:
        return select_open_trip((await self._load()).trips, exclude_ids)

    async def accept_trip(self, trip_id: str, driver: User, vehicle: Vehicle) -> Trip:
        def change(doc: MarketplaceDocument) -> Trip:
            trip = _require_trip(doc, trip_id)
            if not trip.is_open:
                raise ConflictError("trip no longer available")
            trip.assign(driver, vehicle)
            return trip

        trip = await self._mutate(change)
        logger.info("Trip %s claimed by driver %s", trip_id, driver.id)
        return trip

    async def update_trip_status(self, trip_id: str, status: TripStatus) -> Trip:
        """Unconditional overwrite of the trip status."""

        def change(doc: MarketplaceDocument) -> Trip:
            trip = _require_trip(doc, trip_id)
            if status != trip.status and status not in TRIP_TRANSITIONS[trip.status]:
                logger.warning(
                    "Trip %s forced from %s to %s",
                    trip_id,
                    trip.status.value,
                    status.value,
                )
            trip.status = status
            return trip

        return await self._mutate(change)

    async def cancel_trip(self, trip_id: str) -> Trip:
        """Cancel a trip that no driver has claimed yet."""

        def change(doc: MarketplaceDocument) -> Trip:
            trip = _require_trip(doc, trip_id)
            if not trip.is_open:
                raise ConflictError(
                    f"trip can no longer be cancelled ({trip.status.value})"
                )
            trip.transition_to(TripStatus.CANCELLED)
            return trip

        trip = await self._mutate(change)
        logger.info("Trip %s cancelled", trip_id)
        return trip

    async def get_trips_for_user(self, user_id: str) -> list[Trip]:
        return trips_for_user((await self._load()).trips, user_id)

    # ── Settlement ────────────────────────────────────────────────────

    async def create_transaction(self, trip: Trip, method: PaymentMethod) -> Transaction:
        """Record the payment for *trip*; the trip status is left untouched.

        Paying twice with the same method returns the first record; a
        different method for an already settled trip is a conflict.
        """

        def change(doc: MarketplaceDocument) -> Transaction:
            stored = _require_trip(doc, trip.id)
            existing = doc.find_transaction_for_trip(stored.id)
            if existing is not None:
                if existing.method != method:
                    raise ConflictError("trip already settled")
                return existing
            transaction = Transaction(
                id=self.ids.next_id(TRANSACTION_PREFIX, doc.taken_ids()),
                trip_id=stored.id,
                user_id=stored.rider_id,
                amount=stored.fare,
                method=method,
                timestamp=self.clock(),
            )
            doc.transactions.append(transaction)
            return transaction

        transaction = await self._mutate(change)
        logger.info(
            "Trip %s paid with %s (%.2f)", trip.id, method.value, transaction.amount
        )
        return transaction

    async def get_transaction_by_trip_id(self, trip_id: str) -> Optional[Transaction]:
        return (await self._load()).find_transaction_for_trip(trip_id)

    async def request_cash_confirmation(self, trip_id: str) -> Trip:
        def change(doc: MarketplaceDocument) -> Trip:
            trip = _require_trip(doc, trip_id)
            if trip.cash_pending_at is None:
                trip.cash_pending_at = self.clock()
            return trip

        return await self._mutate(change)

    async def confirm_cash_payment(self, trip_id: str) -> Trip:
        def change(doc: MarketplaceDocument) -> Trip:
            trip = _require_trip(doc, trip_id)
            if trip.cash_confirmed_at is None:
                trip.cash_confirmed_at = self.clock()
            return trip

        return await self._mutate(change)

    # ── Internals ─────────────────────────────────────────────────────

    async def _read(self) -> tuple[MarketplaceDocument, Optional[str]]:
        versioned = await self.store.read(self.session_id)
        body = versioned.body
        if not all(isinstance(body.get(key), list) for key in DOCUMENT_COLLECTIONS):
            raise TransportError("Database response is malformed.")
        try:
            return MarketplaceDocument.model_validate(body), versioned.etag
        except ValidationError as exc:
            raise TransportError("Database response is malformed.") from exc

    async def _load(self) -> MarketplaceDocument:
        doc, _ = await self._read()
        return doc

    async def _mutate(self, change: Callable[[MarketplaceDocument], T]) -> T:
        """Read, apply *change*, replace; re-run on a stale write."""
        for attempt in range(1, self.retry_attempts + 1):
            doc, etag = await self._read()
            result = change(doc)
            try:
                await self.store.replace(
                    self.session_id, doc.to_document(), if_match=etag
                )
            except PreconditionFailed:
                logger.info(
                    "Session %s changed under us (attempt %d/%d)",
                    self.session_id,
                    attempt,
                    self.retry_attempts,
                )
                continue
            return result
        raise TransportError(
            f"Gave up after {self.retry_attempts} conflicting writes"
        )


def _require_trip(doc: MarketplaceDocument, trip_id: str) -> Trip:
    trip = doc.find_trip(trip_id)
    if trip is None:
        raise NotFoundError("Trip not found")
    return trip


def _secret_matches(secret: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False
