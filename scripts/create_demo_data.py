"""Create demo data (two owners and a day of bookings)."""

import asyncio
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import select

from slotguard.db.session import AsyncSessionLocal
from slotguard.models.owner import Owner
from slotguard.services.booking import BookingEngine
from slotguard.services.owners import OwnerService

DEMO_OWNERS = [
    ("Ada Lovelace", "ada@example.com"),
    ("Grace Hopper", "grace@example.com"),
]

# (hour, minute, duration in minutes, title)
DEMO_DAY = [
    (9, 0, 30, "Standup"),
    (10, 0, 60, "Design review"),
    (11, 0, 45, "1:1"),
    (14, 30, 90, "Planning"),
]


async def create_demo_data():
    """Register demo owners and book tomorrow's meetings for each."""
    owner_ids = []
    async with AsyncSessionLocal() as session:
        service = OwnerService(session)
        for name, email in DEMO_OWNERS:
            result = await session.execute(select(Owner).where(Owner.email == email))
            existing = result.scalar_one_or_none()
            if existing:
                print(f"Owner {email} already exists, skipping...")
                owner_ids.append(existing.id)
                continue

            outcome = await service.create_owner(name=name, email=email)
            print(f"Created owner {email} ({outcome.value.id})")
            owner_ids.append(outcome.value.id)

    engine = BookingEngine(AsyncSessionLocal)
    day = datetime.combine(
        datetime.now(timezone.utc).date() + timedelta(days=1), time(0), tzinfo=timezone.utc
    )

    for owner_id in owner_ids:
        for hour, minute, duration, title in DEMO_DAY:
            start_at = day.replace(hour=hour, minute=minute)
            outcome = await engine.create_booking(
                owner_id, title, start_at, start_at + timedelta(minutes=duration)
            )
            if outcome.ok:
                print(f"  Booked {title} at {start_at:%H:%M}")
            else:
                print(f"  Skipped {title} at {start_at:%H:%M}: {outcome.error.message}")

    print("\nDemo data created.")


if __name__ == "__main__":
    asyncio.run(create_demo_data())
