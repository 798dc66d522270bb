"""
marketplace/events.py

In-process bus for listing status changes.

The moderation workflow publishes one StatusChangeEvent after every
successful transition. Subscribers (e.g. an email notifier) run
synchronously. A failing subscriber is logged and skipped. It never undoes
the transition and never blocks the other subscribers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, List, Optional

from marketplace.config import IS_DEV


@dataclass(frozen=True)
class StatusChangeEvent:
    listing_kind: str  # property, project
    listing_id: str
    old_status: str
    new_status: Optional[str]  # None when the listing was deleted
    rejection_message: Optional[str]
    changed_by: str  # actor id
    timestamp: datetime

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


Handler = Callable[[StatusChangeEvent], None]


class StatusEventBus:
    """Synchronous publish/subscribe for StatusChangeEvent."""

    def __init__(self):
        self._subscribers: List[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        if handler not in self._subscribers:
            self._subscribers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def clear_subscribers(self) -> None:
        """Used by tests."""
        self._subscribers.clear()

    def publish(self, event: StatusChangeEvent) -> None:
        if IS_DEV:
            print(
                f"[EVENTS] {event.listing_kind}#{event.listing_id} "
                f"{event.old_status} -> {event.new_status} by {event.changed_by}"
            )

        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception as e:
                name = getattr(handler, "__name__", repr(handler))
                print(f"[EVENTS] Handler {name} failed for {event.listing_kind}#{event.listing_id}: {e}")


# Global event bus instance
status_event_bus = StatusEventBus()
