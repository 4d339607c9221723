"""
Demo simulation driver.

Scripted playback of the demo timeline for presentations when live Tesla
data is unavailable. A ``Ticker`` calls ``DemoSimulation.tick`` on a fixed
interval; everything the tick computes comes from the elapsed time on an
injectable clock, so tests drive it by hand.
"""

import asyncio
import logging
import secrets
import string
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import Request

from driveway_hub.app.simulation.feed import DemoEvent, EventFeed, MilestoneTracker
from driveway_hub.app.simulation.phases import (
    COMPLETE,
    JOURNEY_DURATION,
    JOURNEY_START,
    MILESTONES,
    SETUP,
    BOOKING,
    Milestone,
    phase_at,
)
from driveway_hub.app.simulation.waypoints import ROUTE_DURATION_SECONDS, Waypoint, position_at

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Ticker:
    """
    Runs an async callback every ``interval`` seconds in a background task.

    The loop ends when the callback returns False or the ticker is stopped.
    """

    def __init__(self, interval: float, callback: Callable[[], Awaitable[Optional[bool]]]):
        self.interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            try:
                keep_going = await self._callback()
            except Exception:
                logger.exception("Ticker callback failed")
                keep_going = True
            if keep_going is False:
                return
            await asyncio.sleep(self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


def journey_clock(elapsed_seconds: float) -> float:
    """Map demo time in the journey phase onto the recorded route's time axis."""
    into_journey = max(elapsed_seconds - JOURNEY_START, 0)
    return into_journey * ROUTE_DURATION_SECONDS / JOURNEY_DURATION


def _demo_reference() -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "DH-" + "".join(secrets.choice(alphabet) for _ in range(8))


class DemoSimulation:
    """
    One demo session.

    ``start()`` discards any previous run (timer, milestones, feed) and
    starts a fresh one; ``stop()`` halts the ticker but keeps the state so
    it can still be inspected.
    """

    def __init__(
        self,
        tick_seconds: float = 2.0,
        clock: Clock = time.monotonic,
        milestones=MILESTONES,
    ):
        self.tick_seconds = tick_seconds
        self._clock = clock
        self._milestones = sorted(milestones, key=lambda m: m.at)
        self.tracker = MilestoneTracker()
        self.feed = EventFeed()
        self.started_at: Optional[float] = None
        self.reference: Optional[str] = None
        self._ticker: Optional[Ticker] = None

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return max(self._clock() - self.started_at, 0.0)

    def position(self) -> Optional[Waypoint]:
        """Vehicle state from the journey phase onwards; None before it."""
        if self.started_at is None:
            return None
        elapsed = self.elapsed()
        if phase_at(elapsed) in (SETUP, BOOKING):
            return None
        return position_at(journey_clock(elapsed))

    async def start(self, run_ticker: bool = True) -> None:
        await self.stop()
        self.tracker.clear()
        self.feed.clear()
        self.reference = _demo_reference()
        self.started_at = self._clock()
        self._emit(DemoEvent(0.0, "System", "info", "Live demo started - Initializing systems", {"phase": SETUP}))
        logger.info("Demo simulation started (reference %s)", self.reference)

        self.tick()
        if run_ticker:
            self._ticker = Ticker(self.tick_seconds, self._tick_async)
            self._ticker.start()

    async def stop(self) -> None:
        if self._ticker is not None:
            await self._ticker.stop()
            self._ticker = None
            logger.info("Demo simulation stopped")

    async def _tick_async(self) -> bool:
        self.tick()
        return phase_at(self.elapsed()) != COMPLETE

    def tick(self) -> List[DemoEvent]:
        """Fire every milestone that is due and has not fired yet."""
        if self.started_at is None:
            return []
        elapsed = self.elapsed()
        fired = []
        for milestone in self._milestones:
            if milestone.at > elapsed:
                break
            if self.tracker.should_fire(milestone.key):
                event = self._milestone_event(milestone, elapsed)
                if self._emit(event):
                    fired.append(event)
        return fired

    def _milestone_event(self, milestone: Milestone, elapsed: float) -> DemoEvent:
        waypoint = position_at(journey_clock(elapsed))
        message = milestone.message.format(
            speed=waypoint.speed,
            battery=waypoint.battery,
            distance_km=round(waypoint.distance / 1000, 1),
            reference=self.reference,
        )
        return DemoEvent(round(elapsed, 1), milestone.category, milestone.level, message, {"phase": phase_at(elapsed)})

    def _emit(self, event: DemoEvent) -> bool:
        return self.feed.add(event, self._clock())

    def snapshot(self) -> Dict[str, Any]:
        elapsed = self.elapsed()
        position = self.position()
        return {
            "running": self.running,
            "started": self.started_at is not None,
            "phase": phase_at(elapsed) if self.started_at is not None else None,
            "elapsed_seconds": round(elapsed, 1),
            "booking_reference": self.reference,
            "position": position.to_dict() if position else None,
            "events": [e.to_dict() for e in self.feed.events],
        }


async def get_demo_simulation(request: Request) -> DemoSimulation:
    """FastAPI dependency returning the lifespan-built demo simulation."""
    return request.app.state.demo_simulation
