"""
Demo timeline: phase windows and the scripted milestone events.

Times are seconds since the demo started.
"""

from dataclasses import dataclass
from typing import Tuple

SETUP = "setup"
BOOKING = "booking"
JOURNEY = "journey"
ARRIVAL = "arrival"
COMPLETE = "complete"

# (phase, start, end) with half-open windows
PHASE_WINDOWS: Tuple[Tuple[str, float, float], ...] = (
    (SETUP, 0, 30),
    (BOOKING, 30, 120),
    (JOURNEY, 120, 600),
    (ARRIVAL, 600, 660),
)

JOURNEY_START = 120
JOURNEY_DURATION = 480
DEMO_DURATION = 660


def phase_at(elapsed_seconds: float) -> str:
    for phase, start, end in PHASE_WINDOWS:
        if start <= elapsed_seconds < end:
            return phase
    return COMPLETE if elapsed_seconds >= DEMO_DURATION else SETUP


@dataclass(frozen=True)
class Milestone:
    key: str
    at: float  # seconds since demo start
    category: str
    level: str
    message: str  # may reference {speed}, {battery}, {distance_km} or {reference}


MILESTONES: Tuple[Milestone, ...] = (
    # setup
    Milestone("setup_0", 0, "Tesla", "info", "Host authorizing Tesla vehicle..."),
    Milestone("setup_6", 6, "Tesla", "info", "Connecting to Tesla Fleet API..."),
    Milestone("setup_10", 10, "Tesla", "success", "Tesla OAuth completed successfully"),
    Milestone("setup_15", 15, "System", "info", "Vehicle data synchronized"),
    Milestone("setup_20", 20, "System", "success", "Platform ready for live tracking"),
    Milestone("setup_25", 25, "Tesla", "info", "Model 3 Performance detected - Battery: {battery}%"),
    # booking
    Milestone("booking_0", 30, "Booking", "info", "Driver searching for Tesla charging near Mississauga..."),
    Milestone("booking_8", 38, "System", "info", "Found 3 premium Tesla charging locations"),
    Milestone("booking_15", 45, "Booking", "success", "Premium Tesla spot selected in Mississauga"),
    Milestone("booking_22", 52, "Booking", "info", "Tesla Wall Connector (48A) available"),
    Milestone("booking_30", 60, "Booking", "success", "Booking confirmed - {reference}"),
    Milestone("booking_35", 65, "Tesla", "info", "Navigation coordinates sent to vehicle"),
    Milestone("booking_40", 70, "Tesla", "success", "Vehicle acknowledged destination"),
    Milestone("booking_45", 75, "Payment", "info", "Processing payment authorization..."),
    Milestone("booking_50", 80, "Payment", "success", "Payment processed - $69.00 (4 hours @ $15/hr + fees)"),
    Milestone("booking_55", 85, "System", "success", "Host notified of upcoming arrival"),
    # journey
    Milestone("journey_0", 120, "Tesla", "success", "Journey started - Departing from York"),
    Milestone("journey_20", 140, "System", "info", "Real-time tracking active - 30 second updates"),
    Milestone("journey_40", 160, "Tesla", "info", "Vehicle speed: {speed} km/h - Normal traffic conditions"),
    Milestone("journey_5km", 216, "Tesla", "success", "Milestone: 5km completed - 20km remaining"),
    Milestone("journey_battery", 240, "Tesla", "info", "Battery level: {battery}%"),
    Milestone("journey_traffic", 300, "System", "info", "Route optimized - Avoiding Highway 401 traffic"),
    Milestone("journey_halfway", 360, "Tesla", "success", "Milestone: Halfway point - 12.5km completed"),
    Milestone("journey_speed", 420, "Tesla", "info", "Current speed: {speed} km/h - Entering residential area"),
    Milestone("journey_20km", 504, "Tesla", "warning", "Milestone: 5km from destination - Preparing arrival"),
    Milestone("journey_2km", 540, "Tesla", "warning", "{distance_km}km from destination - Entering Mississauga"),
    Milestone("journey_500m", 576, "Tesla", "warning", "Approaching destination - 500m away"),
    # arrival
    Milestone("arrival_0", 600, "Tesla", "success", "Vehicle arrived at the driveway"),
    Milestone("arrival_3", 603, "System", "success", "Automatic arrival detection triggered - Within 100m radius"),
    Milestone("arrival_8", 608, "Tesla", "info", "Vehicle parked - Gear shifted to Park"),
    Milestone("arrival_12", 612, "Booking", "info", "Booking status changed to Active"),
    Milestone("arrival_18", 618, "Tesla", "success", "Tesla Wall Connector detected - Ready to charge"),
    Milestone("arrival_30", 630, "System", "success", "Host notified - Guest has arrived"),
    Milestone("arrival_50", 650, "System", "success", "Journey analytics saved - 25km in 10 minutes"),
    # complete
    Milestone("complete", 660, "System", "success", "Demo complete - All systems operational"),
)
