"""Per-item applied tag state."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from .events import EventDispatcher, TagEvent, TagEventKind
from .logger import get_logger
from .models import AppliedTag, Color, Outcome, TagChange
from .palette import ColorPalette

logger = get_logger()

GENERATED_ID_PREFIX = "item_"
GENERATED_ID_LENGTH = 9


def split_tokens(text: str | None) -> list[str]:
    """Split a comma-separated tag attribute into trimmed, non-empty tokens.

    Example: split_tokens("red, #84cdef,") -> ["red", "#84cdef"]
    """
    if not text:
        return []
    return [token.strip() for token in text.split(",") if token.strip()]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _id_attribute(item: Any) -> str | None:
    own_id = getattr(item, "id", None)
    return own_id if isinstance(own_id, str) and own_id else None


class ItemTagStore:
    """Applied tags for every taggable item, plus the item identity map.

    Items are opaque references (document elements in practice) tracked by
    object identity, so items that compare equal are still distinct. An
    item's identity string comes from ``id_reader`` when that returns a
    non-empty id; otherwise an id is generated on first use and kept here,
    never on the item.
    """

    def __init__(
        self,
        palette: ColorPalette,
        dispatcher: EventDispatcher,
        *,
        clock: Callable[[], datetime] | None = None,
        id_reader: Callable[[Any], str | None] | None = None,
    ) -> None:
        self.palette = palette
        self.dispatcher = dispatcher
        self._clock = clock or _utcnow
        self._id_reader = id_reader or _id_attribute
        # All keyed by id(item); _items keeps the referenced objects alive
        self._items: dict[int, Any] = {}
        self._tags: dict[int, list[AppliedTag]] = {}
        self._generated_ids: dict[int, str] = {}

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def item_id(self, item: Any) -> str:
        """Stable identity for an item: its own id, else a generated one."""
        own_id = self._id_reader(item)
        if own_id:
            return own_id

        key = self._track(item)
        generated = self._generated_ids.get(key)
        if generated is None:
            taken = set(self._generated_ids.values())
            while True:
                generated = GENERATED_ID_PREFIX + uuid.uuid4().hex[:GENERATED_ID_LENGTH]
                if generated not in taken:
                    break
            self._generated_ids[key] = generated
            logger.checks(f"Generated id {generated}")
        return generated

    def forget(self, item: Any) -> None:
        """Drop all state kept for an item. No events are published."""
        key = id(item)
        self._tags.pop(key, None)
        self._generated_ids.pop(key, None)
        self._items.pop(key, None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_tags(self, item: Any) -> list[AppliedTag]:
        """Tags on the item in the order they were applied."""
        return list(self._tags.get(id(item), ()))

    def has_tag(self, item: Any, color: Color | str) -> bool:
        return self._find(item, color) is not None

    def items(self) -> list[Any]:
        """Items that currently carry at least one tag."""
        return [self._items[key] for key, tags in self._tags.items() if tags]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_tag(self, item: Any, color: Color | str, notify: bool = True) -> TagChange:
        """Apply a color to an item.

        ``color`` may be a Color or a name/value token resolved through
        the palette. A color the item already carries is a NOOP: nothing
        changes and no event is published.
        """
        resolved = self._coerce_color(color)
        if resolved is None:
            logger.warning(f"Color '{color}' not found in color palette")
            return TagChange(Outcome.UNRESOLVED)

        existing = self._find(item, resolved)
        if existing is not None:
            logger.checks(f"{self.item_id(item)} already tagged {resolved}")
            return TagChange(Outcome.NOOP, existing)

        tag = AppliedTag(color=resolved, applied_at=self._clock())
        self._tags.setdefault(self._track(item), []).append(tag)
        logger.changes(f"Tagged {self.item_id(item)} with {resolved}")

        if notify:
            self.announce(TagEventKind.TAG_ADDED, item, tag)
        return TagChange(Outcome.APPLIED, tag)

    def remove_tag(self, item: Any, color: Color | str, notify: bool = True) -> TagChange:
        """Remove a color from an item.

        ``color`` may be a Color, a color value, or a palette name. Removing
        a color the item does not carry is a NOOP.
        """
        tag = self._find(item, color)
        if tag is None:
            logger.checks(f"{self.item_id(item)} has no tag {color}; nothing to remove")
            return TagChange(Outcome.NOOP)

        tags = self._tags[id(item)]
        tags[:] = [t for t in tags if t is not tag]
        logger.changes(f"Removed {tag.color} from {self.item_id(item)}")

        if notify:
            self.announce(TagEventKind.TAG_REMOVED, item, tag)
        return TagChange(Outcome.REMOVED, tag)

    def bulk_apply_from_tokens(self, item: Any, tokens: Iterable[str]) -> list[AppliedTag]:
        """Apply declarative initial tags without publishing events.

        Tokens are color names or values. Unknown tokens are reported and
        skipped. Returns the tags that were newly applied.
        """
        applied: list[AppliedTag] = []
        for token in tokens:
            if not token.strip():
                continue
            color = self.palette.resolve(token)
            if color is None:
                logger.warning(f"Initial tag value '{token.strip()}' not found in color palette")
                continue
            change = self.add_tag(item, color, notify=False)
            if change.outcome is Outcome.APPLIED and change.tag is not None:
                applied.append(change.tag)
        return applied

    def announce(self, kind: TagEventKind, item: Any, tag: AppliedTag) -> None:
        """Publish a lifecycle event for a mutation that already happened."""
        event = TagEvent(
            kind=kind,
            item_id=self.item_id(item),
            color=tag.value,
            color_name=tag.name,
            timestamp=self._clock() if kind is TagEventKind.TAG_REMOVED else tag.applied_at,
            item=item,
            tag=tag,
        )
        self.dispatcher.publish(kind, event)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _track(self, item: Any) -> int:
        key = id(item)
        self._items[key] = item
        return key

    def _coerce_color(self, color: Color | str) -> Color | None:
        if isinstance(color, Color):
            return color
        return self.palette.resolve(color)

    def _find(self, item: Any, color: Color | str) -> AppliedTag | None:
        """The item's tag for a Color, a value, or failing that a palette name."""
        tags = self._tags.get(id(item), ())
        if isinstance(color, Color):
            return next((tag for tag in tags if tag.color == color), None)

        for tag in tags:
            if tag.color.has_value(color):
                return tag
        resolved = self.palette.resolve(color)
        if resolved is None:
            return None
        return next((tag for tag in tags if tag.color == resolved), None)
