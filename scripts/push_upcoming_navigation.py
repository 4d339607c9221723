"""
Re-push Tesla navigation for bookings starting soon.

Finds pending/confirmed bookings starting within the window whose
navigation was never sent, and sends the driveway as the destination.
Meant to be run periodically (cron). Usage:

    python -m scripts.push_upcoming_navigation [--within-hours 2]
"""

import argparse
import asyncio
import logging

from driveway_hub.app.core.config import settings
from driveway_hub.app.core.observability import configure_logging
from driveway_hub.app.db.session import build_engine, build_session_factory
from driveway_hub.app.domain.booking.booking_service import BookingService
from driveway_hub.app.services.booking_side_effects import TASK_NAVIGATION, push_navigation, record_failure
from driveway_hub.app.services.tesla.client import TeslaClient, build_http_client
from driveway_hub.app.services.tesla.service import TeslaService

logger = logging.getLogger("driveway_hub.navigation")


async def run(within_hours: int) -> int:
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    http_client = build_http_client(settings)
    tesla = TeslaService(TeslaClient(http_client, settings), settings)

    sent = 0
    try:
        async with session_factory() as db:
            bookings = await BookingService.find_bookings_needing_navigation(db, within_hours)
            booking_ids = [b.id for b in bookings]
        logger.info("%s bookings need navigation within %sh", len(booking_ids), within_hours)

        for booking_id in booking_ids:
            try:
                async with session_factory() as db:
                    if await push_navigation(db, tesla, booking_id):
                        sent += 1
            except Exception as e:
                logger.warning("Navigation push failed for booking %s: %s", booking_id, e)
                await record_failure(session_factory, TASK_NAVIGATION, e, {"booking_id": booking_id})
    finally:
        await http_client.aclose()
        await engine.dispose()

    logger.info("Navigation sent for %s bookings", sent)
    return sent


def main():
    parser = argparse.ArgumentParser(description="Push Tesla navigation for upcoming bookings")
    parser.add_argument("--within-hours", type=int, default=2)
    args = parser.parse_args()

    configure_logging(settings.log_level)
    asyncio.run(run(args.within_hours))


if __name__ == "__main__":
    main()
