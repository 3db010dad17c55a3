"""
Event sink port for simulation notifications.

The core records discrete events (births, deaths, feeding, combat, culls,
population snapshots) as SimEvent records to an injected sink. The core
never prints or logs directly; sinks decide what to do with events.

Sinks:
- NullEventSink: discards everything (default)
- PrintEventSink: tagged console lines ("[WARN] t=120 population: ...")
- MemoryEventSink: bounded in-memory buffer with filters (tests, dashboards)
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Protocol

from .constants import EVENT_BUFFER_SIZE


class EventLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class EventCategory(Enum):
    POPULATION = "population"
    CREATURE_LIFE = "creature_life"
    FEEDING = "feeding"
    COMBAT = "combat"
    REPRODUCTION = "reproduction"
    BRAIN = "brain"
    ENVIRONMENT = "environment"
    CARRION = "carrion"
    SYSTEM = "system"


# Console tags (mirrors the [OK]/[WARN] convention used by driver summaries)
_LEVEL_TAGS = {
    EventLevel.DEBUG: "[DEBUG]",
    EventLevel.INFO: "[INFO]",
    EventLevel.SUCCESS: "[OK]",
    EventLevel.WARNING: "[WARN]",
    EventLevel.ERROR: "[ERROR]",
    EventLevel.CRITICAL: "[CRIT]",
}

_LEVEL_ORDER = {level: i for i, level in enumerate(EventLevel)}


@dataclass
class SimEvent:
    """
    Structured simulation event.

    Attributes:
        tick: Environment tick when the event happened
        category: Subsystem that produced it
        message: Human-readable summary
        level: Severity
        data: Free-form payload (ids, amounts, causes)
    """
    tick: int
    category: EventCategory
    message: str
    level: EventLevel = EventLevel.INFO
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tick': self.tick,
            'category': self.category.value,
            'level': self.level.value,
            'message': self.message,
            'data': dict(self.data),
        }


class EventSink(Protocol):
    """Anything with record(event) can receive simulation events."""

    def record(self, event: SimEvent) -> None:
        ...


class NullEventSink:
    """Discards all events."""

    def record(self, event: SimEvent) -> None:
        pass


class PrintEventSink:
    """
    Prints events as tagged console lines.

    Args:
        min_level: Events below this level are dropped
        categories: Optional whitelist of categories
    """

    def __init__(self, min_level: EventLevel = EventLevel.INFO,
                 categories: Optional[List[EventCategory]] = None):
        self.min_level = min_level
        self.categories = set(categories) if categories else None

    def record(self, event: SimEvent) -> None:
        if _LEVEL_ORDER[event.level] < _LEVEL_ORDER[self.min_level]:
            return
        if self.categories is not None and event.category not in self.categories:
            return
        print(f"{_LEVEL_TAGS[event.level]} t={event.tick} {event.category.value}: {event.message}")


class MemoryEventSink:
    """
    Keeps the most recent events in a bounded buffer.

    Oldest events are dropped once max_events is reached.
    """

    def __init__(self, max_events: int = EVENT_BUFFER_SIZE):
        self.max_events = max_events
        self._events: Deque[SimEvent] = deque(maxlen=max_events)

    def record(self, event: SimEvent) -> None:
        self._events.append(event)

    def __len__(self) -> int:
        return len(self._events)

    def get_events(
        self,
        category: Optional[EventCategory] = None,
        level: Optional[EventLevel] = None,
        limit: Optional[int] = None
    ) -> List[SimEvent]:
        """
        Filter buffered events.

        Args:
            category: Only events from this category
            level: Only events at exactly this level
            limit: Keep only the newest N matches

        Returns:
            Matching events, oldest first
        """
        events = [e for e in self._events
                  if (category is None or e.category == category)
                  and (level is None or e.level == level)]
        if limit is not None:
            events = events[-limit:]
        return events

    def get_recent(self, count: int = 50) -> List[SimEvent]:
        return list(self._events)[-count:]

    def clear(self):
        self._events.clear()
