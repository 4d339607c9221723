"""
Demo simulation tests.

The simulation runs on a fake clock; ``tick()`` is called by hand.
"""

import pytest

from driveway_hub.app.simulation.driver import DemoSimulation, journey_clock
from driveway_hub.app.simulation.feed import DemoEvent, EventFeed, MilestoneTracker
from driveway_hub.app.simulation.phases import (
    ARRIVAL, BOOKING, COMPLETE, JOURNEY, MILESTONES, SETUP, phase_at,
)
from driveway_hub.app.simulation.waypoints import JOURNEY_WAYPOINTS, Waypoint, position_at


# --- Phases ---

@pytest.mark.parametrize("elapsed,phase", [
    (-1, SETUP), (0, SETUP), (29.9, SETUP),
    (30, BOOKING), (119, BOOKING),
    (120, JOURNEY), (599, JOURNEY),
    (600, ARRIVAL), (659, ARRIVAL),
    (660, COMPLETE), (10_000, COMPLETE),
])
def test_phase_windows(elapsed, phase):
    assert phase_at(elapsed) == phase


# --- Position playback ---

def test_position_at_recorded_point_returns_it():
    assert position_at(120) == JOURNEY_WAYPOINTS[4]


def test_position_interpolates_between_points():
    w = position_at(15)
    assert w.lat == pytest.approx((43.689042 + 43.686123) / 2)
    assert w.lng == pytest.approx((-79.451344 + -79.458901) / 2)
    assert w.speed == 12  # round-half-even
    assert w.battery == 78
    assert w.distance == 24250


def test_position_is_clamped_to_route():
    assert position_at(-50) == JOURNEY_WAYPOINTS[0]
    assert position_at(10_000) == JOURNEY_WAYPOINTS[-1]


def test_position_is_pure():
    assert position_at(333.3) == position_at(333.3)


def test_position_requires_waypoints():
    with pytest.raises(ValueError):
        position_at(10, [])


def test_single_point_route():
    only = Waypoint(0, 1.0, 2.0, 0, 50, 0)
    assert position_at(99, [only]) == only


def test_journey_clock_maps_window_onto_route():
    assert journey_clock(120) == 0
    assert journey_clock(360) == 300
    assert journey_clock(600) == 600
    assert journey_clock(50) == 0


# --- Feed and tracker ---

def test_milestone_tracker_fires_once():
    tracker = MilestoneTracker()
    assert tracker.should_fire("journey_0")
    assert not tracker.should_fire("journey_0")
    assert "journey_0" in tracker
    tracker.clear()
    assert tracker.should_fire("journey_0")


def _event(message: str) -> DemoEvent:
    return DemoEvent(0, "System", "info", message)


def test_feed_drops_recent_duplicates():
    feed = EventFeed()
    assert feed.add(_event("hello"), now=100)
    assert not feed.add(_event("hello"), now=104.9)
    assert feed.add(_event("hello"), now=105)
    assert len(feed.events) == 2


def test_feed_keeps_newest_fifty_first():
    feed = EventFeed()
    for i in range(60):
        feed.add(_event(f"event {i}"), now=i)

    events = feed.events
    assert len(events) == 50
    assert events[0].message == "event 59"
    assert events[-1].message == "event 10"


def test_feed_prunes_old_dedup_entries():
    feed = EventFeed()
    for i in range(101):
        feed.add(_event(f"old {i}"), now=0)
    # 101 tracked messages, one over the threshold; all of them are 0s old at now=0
    assert feed.tracked_messages == 101

    feed.add(_event("fresh"), now=61)
    assert feed.tracked_messages == 1


# --- Simulation ---

def _messages(simulation: DemoSimulation):
    return [e.message for e in simulation.feed.events]


async def test_start_emits_initial_events(demo_simulation):
    await demo_simulation.start(run_ticker=False)

    messages = _messages(demo_simulation)
    assert "Live demo started - Initializing systems" in messages
    assert "Host authorizing Tesla vehicle..." in messages
    assert demo_simulation.reference.startswith("DH-")
    assert demo_simulation.snapshot()["phase"] == SETUP
    assert demo_simulation.position() is None


async def test_each_milestone_fires_once_even_with_coarse_ticks(demo_simulation, fake_clock):
    await demo_simulation.start(run_ticker=False)

    fired = 0
    for _ in range(0, 700, 7):
        fake_clock.advance(7)
        fired += len(demo_simulation.tick())
        demo_simulation.tick()

    assert demo_simulation.snapshot()["phase"] == COMPLETE
    assert all(m.key in demo_simulation.tracker for m in MILESTONES)
    # setup_0 fires during start()
    assert fired == len(MILESTONES) - 1


async def test_milestone_messages_are_filled_in(demo_simulation, fake_clock):
    await demo_simulation.start(run_ticker=False)
    fake_clock.advance(61)
    demo_simulation.tick()

    assert f"Booking confirmed - {demo_simulation.reference}" in _messages(demo_simulation)


async def test_position_follows_journey(demo_simulation, fake_clock):
    await demo_simulation.start(run_ticker=False)

    fake_clock.advance(119)
    assert demo_simulation.position() is None

    fake_clock.advance(1)
    assert demo_simulation.position() == JOURNEY_WAYPOINTS[0]

    fake_clock.advance(480)
    assert demo_simulation.position() == JOURNEY_WAYPOINTS[-1]


async def test_restart_clears_previous_run(demo_simulation, fake_clock):
    await demo_simulation.start(run_ticker=False)
    fake_clock.advance(200)
    demo_simulation.tick()
    first_reference = demo_simulation.reference

    await demo_simulation.start(run_ticker=False)

    assert demo_simulation.elapsed() == 0
    assert "journey_0" not in demo_simulation.tracker
    assert all("Journey started" not in m for m in _messages(demo_simulation))
    assert demo_simulation.reference != first_reference


async def test_start_and_stop_ticker(demo_simulation):
    await demo_simulation.start()
    assert demo_simulation.running

    await demo_simulation.stop()
    assert not demo_simulation.running
    assert demo_simulation.snapshot()["started"] is True
