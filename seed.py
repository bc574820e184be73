"""
Seed script -- creates a demo session for reviewers.

Run after migrations:
    python seed.py

Creates one session document holding:
  - 1 rider   (rider@example.com / rider-secret)
  - 1 driver  (driver@example.com / driver-secret)
  - 2 completed trips with their transactions, for the history view
and prints the share URL that both clients open.
"""

import asyncio

import bcrypt

from roninride.config import settings
from roninride.domain.entities import (
    MarketplaceDocument,
    Transaction,
    Trip,
    User,
)
from roninride.domain.enums import PaymentMethod, TripStatus
from roninride.domain.identifiers import now_millis
from roninride.infrastructure.accessor import AVATAR_URL
from roninride.infrastructure.database import (
    async_session_factory,
    create_schema,
    engine,
)
from roninride.infrastructure.repositories import DocumentRepository
from roninride.infrastructure.session import share_url_for
from roninride.workers.driver import DEFAULT_VEHICLE

USERS = [
    {"id": "user_1", "name": "Riley Rider", "email": "rider@example.com",
     "secret": "rider-secret", "rating": 4.8, "num_ratings": 12},
    {"id": "user_2", "name": "Dana Driver", "email": "driver@example.com",
     "secret": "driver-secret", "rating": 4.9, "num_ratings": 87},
]

PAST_TRIPS = [
    {"destination": "Downtown Center", "fare": 24.50, "method": PaymentMethod.CREDIT_CARD},
    {"destination": "Airport Terminal 2", "fare": 38.10, "method": PaymentMethod.CASH},
]


def _user(data: dict) -> User:
    hashed = bcrypt.hashpw(
        data["secret"].encode("utf-8"), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode("utf-8")
    return User(
        id=data["id"],
        name=data["name"],
        email=data["email"],
        secret=hashed,
        avatar_url=AVATAR_URL.format(user_id=data["id"]),
        rating=data["rating"],
        num_ratings=data["num_ratings"],
    )


async def seed() -> str:
    await create_schema()

    rider, driver = (_user(u) for u in USERS)
    document = MarketplaceDocument(users=[rider, driver])

    started = now_millis() - 86_400_000  # yesterday
    for i, past in enumerate(PAST_TRIPS, start=1):
        created = started + i * 3_600_000
        trip = Trip(
            id=f"trip_{created}",
            rider_id=rider.id,
            pickup=settings.default_pickup,
            destination=past["destination"],
            fare=past["fare"],
            created_at=created,
        )
        trip.assign(driver, DEFAULT_VEHICLE)
        trip.transition_to(TripStatus.ON_TRIP)
        trip.transition_to(TripStatus.COMPLETED)
        if past["method"] == PaymentMethod.CASH:
            trip.cash_pending_at = created + 1_200_000
            trip.cash_confirmed_at = created + 1_260_000
        document.trips.append(trip)
        document.transactions.append(
            Transaction(
                id=f"txn_{created + 1_200_000}",
                trip_id=trip.id,
                user_id=rider.id,
                amount=trip.fare,
                method=past["method"],
                timestamp=created + 1_200_000,
            )
        )
    print(f"  Prepared {len(document.users)} users, {len(document.trips)} trips")

    async with async_session_factory() as session:
        row = await DocumentRepository(session).create(document.to_document())
        await session.commit()
        print(f"  Created session {row.session_id}")
        return row.session_id


async def main():
    print("Seeding database...")
    session_id = await seed()
    await engine.dispose()
    print(f"\nSeed complete! Open {share_url_for(session_id)} on both devices.")


if __name__ == "__main__":
    asyncio.run(main())
