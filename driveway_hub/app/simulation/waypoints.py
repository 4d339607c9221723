"""
Pre-recorded demo route (York to Mississauga) and position playback.

``position_at`` is pure: the same elapsed time always yields the same
waypoint, interpolated linearly between the recorded points.
"""

from bisect import bisect_right
from dataclasses import dataclass, asdict
from typing import Dict, Sequence


@dataclass(frozen=True)
class Waypoint:
    time: float  # seconds since journey start
    lat: float
    lng: float
    speed: int  # km/h
    battery: int  # percent
    distance: int  # meters remaining

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


JOURNEY_WAYPOINTS = (
    Waypoint(0, 43.689042, -79.451344, 0, 78, 25000),
    Waypoint(30, 43.686123, -79.458901, 25, 77, 23500),
    Waypoint(60, 43.682045, -79.468234, 35, 77, 22000),
    Waypoint(90, 43.675678, -79.485432, 40, 76, 19500),
    Waypoint(120, 43.668901, -79.502109, 45, 75, 17000),
    Waypoint(180, 43.655432, -79.525678, 38, 74, 14200),
    Waypoint(240, 43.642109, -79.548901, 42, 73, 11500),
    Waypoint(300, 43.628234, -79.572345, 35, 72, 8800),
    Waypoint(360, 43.614567, -79.595432, 30, 71, 6200),
    Waypoint(420, 43.600891, -79.618765, 25, 70, 3500),
    Waypoint(480, 43.587234, -79.642109, 20, 70, 1800),
    Waypoint(540, 43.578901, -79.665432, 15, 69, 800),
    Waypoint(600, 43.571234, -79.684567, 0, 69, 0),
)

ROUTE_DURATION_SECONDS = JOURNEY_WAYPOINTS[-1].time


def position_at(elapsed_seconds: float, waypoints: Sequence[Waypoint] = JOURNEY_WAYPOINTS) -> Waypoint:
    """
    Interpolated vehicle state ``elapsed_seconds`` into the route.

    Elapsed time is clamped to the table bounds. Speed, battery and
    distance are rounded to whole numbers.
    """
    if not waypoints:
        raise ValueError("waypoint table is empty")

    first, last = waypoints[0], waypoints[-1]
    t = min(max(elapsed_seconds, first.time), last.time)
    if t >= last.time:
        return last

    times = [w.time for w in waypoints]
    i = bisect_right(times, t) - 1
    start, end = waypoints[i], waypoints[i + 1]
    progress = (t - start.time) / (end.time - start.time)

    def lerp(a: float, b: float) -> float:
        return a + (b - a) * progress

    return Waypoint(
        time=t,
        lat=lerp(start.lat, end.lat),
        lng=lerp(start.lng, end.lng),
        speed=round(lerp(start.speed, end.speed)),
        battery=round(lerp(start.battery, end.battery)),
        distance=round(lerp(start.distance, end.distance)),
    )
