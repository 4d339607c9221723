"""
Database seeding script for the demo.

Creates a host with one EV-charging driveway and a driver with a Model Y.
Run this script after the database is reachable; tables are created if
missing.
"""

import asyncio
from decimal import Decimal

from sqlalchemy import select

from driveway_hub.app.core.config import settings
from driveway_hub.app.db.session import Base, build_engine, build_session_factory
from driveway_hub.app.models.user import User
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.models.driveway import Driveway
# Remaining models must be registered before create_all
from driveway_hub.app.models.booking import Booking  # noqa: F401
from driveway_hub.app.models.notification import Notification  # noqa: F401
from driveway_hub.app.models.dlq import DeadLetterQueue  # noqa: F401
from driveway_hub.app.models.enums import UserRole
from driveway_hub.app.services.tesla.vin import dimensions_for

HOST_EMAIL = "host@drivewayhub.demo"
DRIVER_EMAIL = "driver@drivewayhub.demo"


async def seed_demo_data():
    """
    Seed the demo accounts.

    Creates:
    - 1 HOST user with a driveway in San Francisco
    - 1 DRIVER user with a Model Y
    """
    engine = build_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = build_session_factory(engine)
    try:
        async with session_factory() as db:
            print("🌱 Starting demo seeding...")

            result = await db.execute(select(User).where(User.email == HOST_EMAIL))
            if result.scalar_one_or_none():
                print("ℹ️  Demo host already exists, skipping seeding")
                return

            host = User(email=HOST_EMAIL, first_name="Demo", last_name="Host", role=UserRole.HOST, is_active=True)
            driver = User(email=DRIVER_EMAIL, first_name="Demo", last_name="Driver", role=UserRole.DRIVER, is_active=True)
            db.add_all([host, driver])
            await db.flush()
            print(f"✅ Created HOST user ({HOST_EMAIL})")
            print(f"✅ Created DRIVER user ({DRIVER_EMAIL})")

            db.add(Driveway(
                host_id=host.id,
                title="Covered driveway with Tesla Wall Connector",
                description="Two minutes from the station. Gate code sent after booking.",
                address="1 Market St",
                city="San Francisco",
                state="CA",
                zip_code="94105",
                latitude=37.7749,
                longitude=-122.4194,
                hourly_rate=Decimal("15.00"),
                daily_rate=Decimal("90.00"),
                max_vehicle_length=240.0,
                max_vehicle_width=96.0,
                max_vehicle_height=84.0,
                has_ev_charging=True,
                charging_connector_type="NACS",
                is_covered=True,
                has_security_camera=True,
            ))
            print("✅ Created driveway at 1 Market St ($15/h)")

            dims = dimensions_for("Model Y")
            db.add(Vehicle(
                user_id=driver.id,
                display_name="Demo Model Y",
                model="Model Y",
                year=2023,
                color="Pearl White",
                length_inches=dims.length_inches,
                width_inches=dims.width_inches,
                height_inches=dims.height_inches,
                battery_level=87,
            ))
            print("✅ Created Model Y for the driver")

            await db.commit()

            print("\n🎉 Demo seeding completed successfully!")
            print("\nLog in with POST /api/auth/login using either email.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
