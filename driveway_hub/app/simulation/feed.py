"""
Demo event feed and milestone bookkeeping.
"""

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional


@dataclass
class DemoEvent:
    elapsed_seconds: float
    category: str
    level: str
    message: str
    details: Optional[Dict[str, Any]] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MilestoneTracker:
    """Remembers which named milestones have fired so each fires once."""

    def __init__(self):
        self._seen = set()

    def should_fire(self, key: str) -> bool:
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._seen

    def clear(self) -> None:
        self._seen.clear()


class EventFeed:
    """
    Newest-first event log with recency de-duplication.

    An identical message seen within ``dedup_window`` seconds is dropped.
    The dedup map is pruned of entries older than ``prune_age`` once it
    holds more than ``prune_threshold`` messages.
    """

    def __init__(
        self,
        max_events: int = 50,
        dedup_window: float = 5.0,
        prune_threshold: int = 100,
        prune_age: float = 60.0,
    ):
        self.max_events = max_events
        self.dedup_window = dedup_window
        self.prune_threshold = prune_threshold
        self.prune_age = prune_age
        self._events: List[DemoEvent] = []
        self._last_seen: Dict[str, float] = {}

    def add(self, event: DemoEvent, now: float) -> bool:
        """Add ``event`` observed at clock time ``now``; False if it was a duplicate."""
        last = self._last_seen.get(event.message)
        if last is not None and now - last < self.dedup_window:
            return False

        self._last_seen[event.message] = now
        if len(self._last_seen) > self.prune_threshold:
            cutoff = now - self.prune_age
            self._last_seen = {m: t for m, t in self._last_seen.items() if t >= cutoff}

        self._events.insert(0, event)
        del self._events[self.max_events:]
        return True

    @property
    def events(self) -> List[DemoEvent]:
        return list(self._events)

    @property
    def tracked_messages(self) -> int:
        return len(self._last_seen)

    def clear(self) -> None:
        self._events.clear()
        self._last_seen.clear()
