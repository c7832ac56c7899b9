"""Tag lifecycle events and their dispatcher."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .logger import get_logger
from .models import AppliedTag

logger = get_logger()


class TagEventKind(str, Enum):
    """The closed set of events listeners may subscribe to."""

    TAG_ADDED = "tagAdded"
    TAG_REMOVED = "tagRemoved"

    @classmethod
    def coerce(cls, event_name: str | TagEventKind) -> TagEventKind | None:
        """Map an event name to its kind, or None if it is not one of ours."""
        if isinstance(event_name, TagEventKind):
            return event_name
        try:
            return cls(event_name)
        except ValueError:
            return None


@dataclass(frozen=True)
class TagEvent:
    """Payload delivered to tagAdded/tagRemoved handlers."""

    kind: TagEventKind
    item_id: str
    color: str
    color_name: str
    timestamp: datetime
    item: Any = field(default=None, repr=False, compare=False)
    tag: AppliedTag | None = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict[str, str]:
        """Wire form of the event, as seen by page scripts."""
        return {
            "event": self.kind.value,
            "itemId": self.item_id,
            "color": self.color,
            "colorName": self.color_name,
            "timestamp": self.timestamp.isoformat(),
        }


TagEventHandler = Callable[[TagEvent], Any]


class EventDispatcher:
    """Publish/subscribe table keyed by TagEventKind.

    Handlers are external code: each one runs in isolation and a failing
    handler is logged without stopping the others or reaching the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[TagEventKind, list[TagEventHandler]] = {
            kind: [] for kind in TagEventKind
        }

    def subscribe(self, event_name: str | TagEventKind, handler: TagEventHandler) -> bool:
        """Register a handler. Returns False for an unknown event name."""
        kind = TagEventKind.coerce(event_name)
        if kind is None:
            logger.checks(f"Ignoring subscription to unknown event '{event_name}'")
            return False
        self._handlers[kind].append(handler)
        return True

    def unsubscribe(self, event_name: str | TagEventKind, handler: TagEventHandler) -> bool:
        """Remove a handler. Returns False for an unknown event name.

        Removing a handler that was never registered is a no-op.
        """
        kind = TagEventKind.coerce(event_name)
        if kind is None:
            return False
        self._handlers[kind] = [h for h in self._handlers[kind] if h != handler]
        return True

    def publish(self, event_name: str | TagEventKind, payload: TagEvent) -> None:
        """Invoke every handler for the event in registration order."""
        kind = TagEventKind.coerce(event_name)
        if kind is None:
            logger.checks(f"Not publishing unknown event '{event_name}'")
            return

        # Snapshot so handlers may (un)subscribe while we iterate
        for handler in list(self._handlers[kind]):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Error in {kind.value} event handler {_handler_name(handler)}")

    def handler_count(self, event_name: str | TagEventKind) -> int:
        kind = TagEventKind.coerce(event_name)
        return len(self._handlers[kind]) if kind is not None else 0


def _handler_name(handler: TagEventHandler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
