"""Pytest configuration and fixtures for colortag tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from bs4 import Tag

from colortag.document import Document, element_id, new_element
from colortag.events import EventDispatcher, TagEvent, TagEventKind
from colortag.logger import reset_logger
from colortag.palette import ColorPalette
from colortag.store import ItemTagStore

FIXTURES_DIR = Path(__file__).parent / "fixtures"
EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Reset logger configuration around each test for isolation."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Deterministic clock advancing one second per call."""
    start = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
    ticks = iter(range(1_000_000))

    def _now() -> datetime:
        return start + timedelta(seconds=next(ticks))

    return _now


@pytest.fixture
def red_blue_palette() -> ColorPalette:
    return ColorPalette([{"name": "Red", "value": "#ec8383"}, {"name": "Blue", "value": "#84cdef"}])


class EventRecorder:
    """Subscribes to every tag event and keeps what it sees."""

    def __init__(self, dispatcher: EventDispatcher) -> None:
        self.events: list[TagEvent] = []
        for kind in TagEventKind:
            dispatcher.subscribe(kind, self.events.append)

    def of(self, kind: TagEventKind) -> list[TagEvent]:
        return [event for event in self.events if event.kind is kind]


@pytest.fixture
def store(red_blue_palette: ColorPalette, clock: Callable[[], datetime]) -> ItemTagStore:
    return ItemTagStore(red_blue_palette, EventDispatcher(), clock=clock, id_reader=element_id)


@pytest.fixture
def recorder(store: ItemTagStore) -> EventRecorder:
    return EventRecorder(store.dispatcher)


def taggable_item(
    document: Document,
    item_id: str | None = None,
    *,
    initial_tags: str | None = None,
    with_container: bool = True,
) -> Tag:
    """Append a taggable <li> (with its tag container) to the document body."""
    attrs: dict[str, str] = {}
    if item_id is not None:
        attrs["id"] = item_id
    if initial_tags is not None:
        attrs["data-initial-tags"] = initial_tags
    item = new_element("li", classes=["taggable-item"], attrs=attrs, text=item_id or "")
    if with_container:
        item.append(new_element("div", classes=["item-tags"]))
    document.body.append(item)
    return item
