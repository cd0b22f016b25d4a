"""Event records emitted by the core for notification collaborators."""

from skillswap.events.bus import EVENT_TYPES, Event, EventBus, EventLog

__all__ = ["EVENT_TYPES", "Event", "EventBus", "EventLog"]
