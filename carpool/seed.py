"""
Database seeding script for demo data.

Creates a driver and two passengers, one vehicle and a few upcoming trips so
the API can be explored right away.
Run this script after the database is reachable: python -m carpool.seed
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from carpool.app.core.clock import utcnow
from carpool.app.core.security import get_password_hash
from carpool.app.db.session import AsyncSessionLocal, Base, engine
from carpool.app.models.enums import VehicleType
from carpool.app.models.user import User
from carpool.app.models.vehicle import Vehicle
from carpool.app.models.trip import Trip
# Remaining models imported so create_all knows every table
from carpool.app.models.trip_request import TripRequest
from carpool.app.models.trip_reservation import TripReservation
from carpool.app.models.chat import Chat, ChatMember, Message
from carpool.app.models.payment import Payment

DEMO_USERS = [
    ("driver@carpool.dev", "Dana Driver", "driver123"),
    ("alice@carpool.dev", "Alice Passenger", "alice123"),
    ("bob@carpool.dev", "Bob Passenger", "bob123"),
]

DEMO_TRIPS = [
    # origin, destination, days from now, price, seats
    ("Berlin", "Hamburg", 1, 25.0, 3),
    ("Hamburg", "Berlin", 3, 22.5, 3),
    ("Berlin", "Leipzig", 7, 15.0, 2),
]


async def seed_demo_data():
    """
    Seed demo users, a vehicle and upcoming trips.

    Skips everything when the demo driver already exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting demo seeding...")

        result = await db.execute(select(User).where(User.email == DEMO_USERS[0][0]))
        if result.scalar_one_or_none():
            print("ℹ️  Demo data already exists, skipping seeding")
            return

        users = []
        for email, name, password in DEMO_USERS:
            user = User(
                email=email,
                name=name,
                hashed_password=get_password_hash(password),
                is_active=True,
                is_verified=True,
            )
            db.add(user)
            users.append(user)
            print(f"✅ Created user {email} (password: {password})")
        await db.flush()

        driver = users[0]
        vehicle = Vehicle(
            owner_id=driver.id,
            vehicle_type=VehicleType.CAR,
            brand="Volkswagen",
            model="Golf",
            seat_count=5,
            license_plate="B-CP-1001",
        )
        db.add(vehicle)
        await db.flush()
        print(f"✅ Created vehicle {vehicle.brand} {vehicle.model} for {driver.email}")

        now = utcnow()
        for origin, destination, days, price, seats in DEMO_TRIPS:
            db.add(Trip(
                driver_id=driver.id,
                vehicle_id=vehicle.id,
                origin=origin,
                destination=destination,
                departure_at=now + timedelta(days=days),
                price=price,
                total_seats=seats,
                available_seats=seats,
                is_full=False,
            ))
            print(f"✅ Created trip {origin} -> {destination} in {days} day(s)")

        await db.commit()
        print("🎉 Seeding complete")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
