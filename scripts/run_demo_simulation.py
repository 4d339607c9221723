"""
Run the demo simulation from the command line.

Prints each milestone as it fires and the vehicle position while the
journey is underway. Usage:

    python -m scripts.run_demo_simulation [--tick 2] [--speed 1]
"""

import argparse
import asyncio
import logging
import time

from driveway_hub.app.core.config import settings
from driveway_hub.app.core.observability import configure_logging
from driveway_hub.app.simulation.driver import DemoSimulation
from driveway_hub.app.simulation.phases import COMPLETE, DEMO_DURATION

logger = logging.getLogger("driveway_hub.demo")


def scaled_clock(speed: float):
    """Monotonic clock running ``speed`` times faster than real time."""
    origin = time.monotonic()
    return lambda: origin + (time.monotonic() - origin) * speed


async def run(tick_seconds: float, speed: float) -> None:
    simulation = DemoSimulation(tick_seconds=tick_seconds, clock=scaled_clock(speed))
    await simulation.start(run_ticker=False)
    print(f"🚗 Demo started, booking reference {simulation.reference}")
    print(f"   Full run takes {DEMO_DURATION / speed:.0f}s at {speed}x\n")

    for event in simulation.feed.events:
        print(f"[{event.elapsed_seconds:6.1f}s] {event.category:<8} {event.message}")

    while True:
        await asyncio.sleep(tick_seconds)
        for event in simulation.tick():
            print(f"[{event.elapsed_seconds:6.1f}s] {event.category:<8} {event.message}")

        state = simulation.snapshot()
        position = state["position"]
        if position:
            logger.debug(
                "phase=%s lat=%s lng=%s speed=%s battery=%s",
                state["phase"], position["lat"], position["lng"], position["speed"], position["battery"],
            )
        if state["phase"] == COMPLETE:
            break

    print("\n🎉 Demo complete")


def main():
    parser = argparse.ArgumentParser(description="Play back the Driveway Hub demo timeline")
    parser.add_argument("--tick", type=float, default=settings.demo_tick_seconds, help="Seconds between ticks")
    parser.add_argument("--speed", type=float, default=1.0, help="Playback speed multiplier")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    try:
        asyncio.run(run(args.tick, args.speed))
    except KeyboardInterrupt:
        print("\nDemo interrupted")


if __name__ == "__main__":
    main()
