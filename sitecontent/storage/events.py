"""Event system for tracking changes to stored content."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Any

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur."""

    # Record events
    RECORD_CREATED = auto()
    RECORD_UPDATED = auto()
    RECORD_DELETED = auto()

    # Collection events
    COLLECTION_SAVED = auto()
    BODIES_EXTERNALIZED = auto()

    # System events
    CACHE_INVALIDATED = auto()
    MIGRATION_COMPLETED = auto()


@dataclass
class Event:
    """An event that occurred in the system."""

    type: EventType
    timestamp: datetime
    data: dict[str, Any]

    @property
    def collection(self) -> str | None:
        """Get collection key if this is a content event."""
        return self.data.get("collection")

    @property
    def record_id(self) -> str | None:
        """Get record id if this is a record event."""
        return self.data.get("record_id")


class EventBus:
    """Simple event bus for publishing and subscribing to events."""

    def __init__(self):
        self._subscribers: dict[EventType, list[Callable[[Event], None]]] = {}
        self._history: list[Event] = []
        self._history_limit = 1000

    def subscribe(
        self, event_type: EventType, handler: Callable[[Event], None]
    ) -> None:
        """Subscribe to events of a specific type."""
        self._subscribers.setdefault(event_type, []).append(handler)

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        A failing subscriber is logged and does not stop delivery to the
        remaining subscribers.
        """
        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in self._subscribers.get(event.type, []):
            try:
                handler(event)
            except Exception:
                logger.exception("Subscriber failed handling %s", event.type.name)

    def get_history(
        self, event_type: EventType | None = None, limit: int = 100
    ) -> list[Event]:
        """Get event history."""
        history = self._history

        if event_type:
            history = [e for e in history if e.type == event_type]

        return history[-limit:]

    def clear_history(self) -> None:
        """Clear event history."""
        self._history.clear()


class EventPublisher:
    """Mixin for classes that publish events."""

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus

    def _publish_event(self, event_type: EventType, **data) -> None:
        """Publish an event if a bus is attached."""
        if self.event_bus is None:
            return
        event = Event(type=event_type, timestamp=datetime.now(), data=data)
        self.event_bus.publish(event)
