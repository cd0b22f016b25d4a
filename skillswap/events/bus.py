"""Notification channel — core events, in-process subscribers, and an outbox.

The core emits plain :class:`Event` records; delivering them (toast, email,
push) belongs to whoever subscribes. Every published event is appended to
an optional :class:`EventLog` (``events.jsonl``) so delivery collaborators
can replay what they missed. A failing subscriber never undoes the core
operation that emitted the event; the failure is logged and counted.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from skillswap.errors import ValidationError
from skillswap.storage import new_id, utcnow

logger = logging.getLogger(__name__)

# All event types the core emits
EVENT_TYPES = [
    "member.registered",
    "member.updated",
    "member.banned",
    "member.unbanned",
    "request.created",
    "request.accepted",
    "request.rejected",
    "request.cancelled",
    "request.completed",
    "request.force_cancelled",
    "rating.submitted",
    "skill.submitted",
    "skill.approved",
    "skill.rejected",
    "report.filed",
    "report.resolved",
    "report.dismissed",
    "platform.message",
]


@dataclass
class Event:
    """A notification record: ``{type, subject_ids, timestamp, payload}``."""

    type: str
    subject_ids: list[str] = field(default_factory=list)
    timestamp: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    id: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = utcnow()
        if not self.id:
            self.id = new_id()


EventHandler = Callable[[Event], None]


class EventLog:
    """Append-only JSONL outbox of published events.

    Storage path: ``~/.skillswap/events/events.jsonl``.
    """

    LOG_FILE = "events.jsonl"

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".skillswap" / "events"
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / self.LOG_FILE

    def append(self, event: Event) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(event)) + "\n")

    def read(
        self,
        *,
        event_type: Optional[str] = None,
        subject_id: Optional[str] = None,
        since: Optional[str] = None,
    ) -> list[Event]:
        """Return logged events in publication order, optionally filtered."""
        if not self._path.exists():
            return []
        events: list[Event] = []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            event = Event(**json.loads(line))
            if event_type and event.type != event_type:
                continue
            if subject_id and subject_id not in event.subject_ids:
                continue
            if since and event.timestamp <= since:
                continue
            events.append(event)
        return events


class EventBus:
    """Publishes core events to subscribers and the outbox."""

    def __init__(self, log: Optional[EventLog] = None) -> None:
        self._log = log
        self._subscribers: list[tuple[EventHandler, frozenset[str]]] = []
        self.failed_deliveries = 0

    def subscribe(self, handler: EventHandler, events: Optional[Iterable[str]] = None) -> None:
        """Register *handler* for the given event types (all types if omitted)."""
        types = frozenset(events or ())
        unknown = types - set(EVENT_TYPES)
        if unknown:
            raise ValidationError(f"Unknown event types: {sorted(unknown)}")
        self._subscribers.append((handler, types))

    def publish(
        self,
        event_type: str,
        subject_ids: Iterable[str],
        payload: Optional[dict[str, Any]] = None,
    ) -> Event:
        """Record and dispatch an event. Returns the event."""
        if event_type not in EVENT_TYPES:
            raise ValidationError(f"Unknown event type: '{event_type}'")
        event = Event(type=event_type, subject_ids=list(subject_ids), payload=payload or {})

        if self._log is not None:
            self._log.append(event)

        for handler, types in self._subscribers:
            if types and event.type not in types:
                continue
            try:
                handler(event)
            except Exception:
                self.failed_deliveries += 1
                logger.exception("Subscriber %r failed on %s %s", handler, event.type, event.id)
        return event
