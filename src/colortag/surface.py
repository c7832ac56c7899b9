"""Interaction surface: turns taggable elements into color-taggable widgets.

ColorTag builds the trigger button, palette and applied-tag elements for
each taggable item and routes raw input (click, touch, keys, hover) to the
tag store and the palette controller. All palette state lives in the
controller; this module only asks it to change.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from bs4 import Tag

from .config import ColorTagConfig, parse_config
from .controller import PaletteController
from .document import (
    Document,
    add_class,
    child_elements,
    contains,
    describe,
    element_id,
    has_class,
    new_element,
    remove_class,
    select,
    set_style,
)
from .events import EventDispatcher, TagEventHandler, TagEventKind
from .exceptions import MissingContainerError
from .logger import get_logger
from .models import AppliedTag, Color, Outcome, TagChange
from .palette import (
    DEFAULT_COLORS,
    ColorPalette,
    ColorSpec,
    generate_color_name,
    remove_mark_color,
)
from .store import ItemTagStore, split_tokens

logger = get_logger()

INITIAL_TAGS_ATTRIBUTE = "data-initial-tags"

TRIGGER_CLASS = "item-add-tag-button"
PALETTE_CLASS = "item-color-palette"
OPTION_CLASS = "color-tag-option"
APPLIED_TAG_CLASS = "applied-tag"
REMOVE_MARK_CLASS = "remove-tag-mark"
PALETTE_OPEN_CLASS = "active"
TRIGGER_OPEN_CLASS = "palette-active"

ACTIVATION_KEYS = frozenset({"Enter", " "})
REMOVAL_KEYS = frozenset({"Enter", " ", "Delete", "Backspace"})


# ============================================================================
# Element-backed views for the palette controller
# ============================================================================


class ElementPalette:
    """A palette element and the color behind each of its options."""

    def __init__(self, document: Document, element: Tag, colors: Sequence[Color]) -> None:
        self.document = document
        self.element = element
        self.colors = list(colors)

    @property
    def options(self) -> list[Tag]:
        return child_elements(self.element, OPTION_CLASS)

    @property
    def option_count(self) -> int:
        return len(self.options)

    @property
    def is_marked_open(self) -> bool:
        return has_class(self.element, PALETTE_OPEN_CLASS)

    def set_open(self, is_open: bool) -> None:
        if is_open:
            add_class(self.element, PALETTE_OPEN_CLASS)
        else:
            remove_class(self.element, PALETTE_OPEN_CLASS)

    def contains(self, target: Any) -> bool:
        return contains(self.element, target)

    def focus_option(self, index: int) -> None:
        options = self.options
        if 0 <= index < len(options):
            self.document.focus(options[index])

    def option_index(self, option: Tag) -> int:
        for index, candidate in enumerate(self.options):
            if candidate is option:
                return index
        raise ValueError(f"{describe(option)} is not an option of this palette")

    def color_at(self, index: int) -> Color:
        return self.colors[index]


class ElementTrigger:
    """The add-tag button of an item."""

    def __init__(self, document: Document, element: Tag) -> None:
        self.document = document
        self.element = element

    def set_expanded(self, expanded: bool) -> None:
        if expanded:
            add_class(self.element, TRIGGER_OPEN_CLASS)
        else:
            remove_class(self.element, TRIGGER_OPEN_CLASS)
        self.element["aria-expanded"] = "true" if expanded else "false"

    def contains(self, target: Any) -> bool:
        return contains(self.element, target)

    def focus(self) -> None:
        self.document.focus(self.element)


@dataclass
class ItemWidget:
    """Everything built for one taggable item."""

    item: Tag
    container: Tag
    trigger: ElementTrigger
    palette: ElementPalette


# ============================================================================
# Markup builders
# ============================================================================


def _svg(name: str, **attrs: str) -> Tag:
    return new_element(name, attrs={key.replace("_", "-"): value for key, value in attrs.items()})


def _plus_icon() -> Tag:
    svg = _svg("svg", viewBox="0 0 24 24", width="16", height="16", aria_hidden="true")
    add_class(svg, "plus-icon")
    stroke = {"stroke": "currentColor", "stroke_width": "2"}
    svg.append(_svg("circle", cx="12", cy="12", r="10", fill="none", **stroke))
    svg.append(_svg("line", x1="12", y1="8", x2="12", y2="16", **stroke))
    svg.append(_svg("line", x1="8", y1="12", x2="16", y2="12", **stroke))
    return svg


def _x_icon(stroke: str) -> Tag:
    svg = _svg("svg", viewBox="0 0 24 24", width="10", height="10", aria_hidden="true")
    add_class(svg, "x-icon")
    line = {"stroke": stroke, "stroke_width": "2", "stroke_linecap": "round"}
    svg.append(_svg("line", x1="6", y1="6", x2="18", y2="18", **line))
    svg.append(_svg("line", x1="18", y1="6", x2="6", y2="18", **line))
    return svg


def build_trigger() -> Tag:
    button = new_element(
        "button",
        classes=[TRIGGER_CLASS],
        attrs={
            "type": "button",
            "title": "Add color tag",
            "aria-label": "Add color tag",
            "aria-expanded": "false",
            "aria-haspopup": "true",
        },
    )
    button.append(_plus_icon())
    return button


def build_palette(colors: Sequence[Color]) -> Tag:
    palette = new_element(
        "div",
        classes=[PALETTE_CLASS],
        attrs={"role": "menu", "aria-label": "Color tag options"},
    )
    for color in colors:
        palette.append(
            new_element(
                "div",
                classes=[OPTION_CLASS],
                style={"background-color": color.value},
                attrs={
                    "data-color": color.value,
                    "data-color-name": color.name,
                    "title": f"Tag with {color.name}",
                    "tabindex": "0",
                    "role": "menuitem",
                    "aria-label": f"Tag with {color.name} color",
                },
            )
        )
    return palette


def decorate_applied_tag(element: Tag, color: Color) -> Tag:
    """Give an applied-tag element its data and accessibility attributes."""
    add_class(element, APPLIED_TAG_CLASS)
    set_style(element, {"background-color": color.value})
    element["data-color"] = color.value
    element["data-color-name"] = color.name
    element["role"] = "button"
    element["tabindex"] = "0"
    element["aria-label"] = f"Remove {color.name} tag"
    return element


def build_remove_mark(color: Color) -> Tag:
    mark = new_element("span", classes=[REMOVE_MARK_CLASS], attrs={"title": "Remove tag"})
    mark.append(_x_icon(remove_mark_color(color)))
    return mark


# ============================================================================
# ColorTag
# ============================================================================


class ColorTag:
    """Color tagging for the taggable items of one document.

    Example:
        tagger = ColorTag(Document(html))
        tagger.on("tagAdded", lambda event: print(event.item_id, event.color_name))
        count = tagger.init()
        tagger.click(tagger.document.query_selector("#doc-1 .item-add-tag-button"))
    """

    def __init__(
        self,
        document: Document,
        config: ColorTagConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.document = document
        self.config = config or ColorTagConfig()
        self.palette = ColorPalette(self.config.color_specs())
        self.dispatcher = EventDispatcher()
        self.store = ItemTagStore(
            self.palette, self.dispatcher, clock=clock, id_reader=element_id
        )
        self.controller = PaletteController(describe=describe)
        # Keyed by id() of the item / applied-tag element
        self._widgets: dict[int, ItemWidget] = {}
        self._remove_marks: dict[int, tuple[Tag, Tag]] = {}

    # ------------------------------------------------------------------
    # Configuration and subscriptions
    # ------------------------------------------------------------------

    def configure(
        self,
        config: ColorTagConfig | None = None,
        *,
        colors: Sequence[ColorSpec] | None = None,
        **options: Any,
    ) -> ColorTagConfig:
        """Replace the configuration, optionally overriding single options.

        ``colors`` may hold raw values, mappings or Color objects and
        replaces the palette. Items already set up keep the options their
        palette was built with.

        Raises:
            ValidationError: If the resulting configuration is invalid
        """
        base = config or self.config
        if options:
            data = base.model_dump(exclude_none=True)
            data.update(options)
            base = parse_config(data)
        self.config = base

        if colors is not None:
            self.palette.configure(colors)
        elif config is not None:
            self.palette.configure(base.color_specs() or DEFAULT_COLORS)
        return self.config

    def on(self, event_name: str | TagEventKind, handler: TagEventHandler) -> bool:
        return self.dispatcher.subscribe(event_name, handler)

    def off(self, event_name: str | TagEventKind, handler: TagEventHandler) -> bool:
        return self.dispatcher.unsubscribe(event_name, handler)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def init(self, selector: str | None = None, colors: Sequence[ColorSpec] | None = None) -> int:
        """Set up every taggable item and load its declarative tags.

        With a selector (argument or configured), matching elements are
        made taggable and get a tag container if they lack one. Without
        one, elements already carrying the taggable class are used.

        Returns:
            Number of items successfully initialized
        """
        if colors is not None:
            self.palette.configure(colors)

        selector = selector or self.config.taggable_selector
        if selector:
            items = self.document.query_selector_all(selector)
            for item in items:
                add_class(item, self.config.taggable_item_class)
            for item in items:
                if self._find_container(item) is None:
                    item.append(new_element("div", classes=[self.config.item_tags_class]))
        else:
            items = self.document.query_selector_all(f".{self.config.taggable_item_class}")

        initialized = 0
        for item in items:
            if self.setup_item(item):
                self.process_initial_tags(item)
                initialized += 1

        logger.changes(f"Initialized {initialized} of {len(items)} taggable items")
        return initialized

    def setup_item(self, item: Tag) -> bool:
        """Build the trigger and palette for an item.

        Items without a tag container are reported and skipped. Setting up
        an item twice is harmless.
        """
        if id(item) in self._widgets:
            logger.checks(f"{describe(item)} is already set up")
            return True

        try:
            container = self._require_container(item)
        except MissingContainerError as e:
            logger.error(str(e))
            return False

        trigger = build_trigger()
        item.insert(0, trigger)
        colors = self.palette.colors
        palette = build_palette(colors)
        item.append(palette)

        self._widgets[id(item)] = ItemWidget(
            item=item,
            container=container,
            trigger=ElementTrigger(self.document, trigger),
            palette=ElementPalette(self.document, palette, colors),
        )
        self._adopt_rendered_tags(item, container)
        return True

    def process_initial_tags(self, item: Tag) -> list[AppliedTag]:
        """Apply the item's data-initial-tags without publishing events."""
        tokens = split_tokens(_attribute(item, INITIAL_TAGS_ATTRIBUTE))
        if not tokens:
            return []

        try:
            container = self._require_container(item)
        except MissingContainerError as e:
            logger.error(str(e))
            return []

        applied = self.store.bulk_apply_from_tokens(item, tokens)
        for tag in applied:
            container.append(decorate_applied_tag(new_element("div"), tag.color))
        return applied

    def _adopt_rendered_tags(self, item: Tag, container: Tag) -> None:
        """Take over applied-tag elements already present in the markup.

        Only direct children of the item's own container are considered;
        tags of nested items belong to those items.
        """
        for element in child_elements(container, APPLIED_TAG_CLASS):
            value = _attribute(element, "data-color").strip()
            if not value:
                logger.warning(f"Dropping applied tag without data-color in {describe(item)}")
                self.document.remove(element)
                continue

            palette_color = self.palette.resolve(value)
            name = _attribute(element, "data-color-name").strip()
            if not name:
                name = (
                    palette_color.name if palette_color is not None else generate_color_name(value)
                )
            color = Color(name=name, value=value)

            change = self.store.add_tag(item, color, notify=False)
            if change.outcome is Outcome.NOOP:
                logger.warning(f"Dropping duplicate {color} tag rendered in {describe(item)}")
                self.document.remove(element)
            else:
                decorate_applied_tag(element, color)

    # ------------------------------------------------------------------
    # Tag operations
    # ------------------------------------------------------------------

    def tags(self, item: Tag) -> list[AppliedTag]:
        return self.store.list_tags(item)

    def add_tag_to_item(self, item: Tag, color: Color | str, notify: bool = True) -> TagChange:
        """Apply a color to an item and render it.

        Listeners are notified after the tag element is in the document.
        """
        try:
            container = self._require_container(item)
        except MissingContainerError as e:
            logger.error(str(e))
            return TagChange(Outcome.ABORTED)

        change = self.store.add_tag(item, color, notify=False)
        if change.outcome is Outcome.APPLIED and change.tag is not None:
            container.append(decorate_applied_tag(new_element("div"), change.tag.color))
            if notify:
                self.store.announce(TagEventKind.TAG_ADDED, item, change.tag)
        return change

    def remove_tag_from_item(self, item: Tag, color: Color | str) -> TagChange:
        """Remove a color (by Color, value or palette name) and its rendered tag."""
        change = self.store.remove_tag(item, color, notify=False)
        if change.outcome is Outcome.REMOVED and change.tag is not None:
            for element in self._tag_elements(item):
                if change.tag.color.has_value(_attribute(element, "data-color")):
                    self._remove_marks.pop(id(element), None)
                    self.document.remove(element)
            self.store.announce(TagEventKind.TAG_REMOVED, item, change.tag)
        return change

    # ------------------------------------------------------------------
    # Input routing
    # ------------------------------------------------------------------

    def widget_for(self, target: Any) -> ItemWidget | None:
        """The widget of the nearest set-up item enclosing target."""
        node = target if isinstance(target, Tag) else None
        while node is not None:
            widget = self._widgets.get(id(node))
            if widget is not None and widget.item is node:
                return widget
            node = node.parent
        return None

    def click(self, target: Any) -> None:
        self._activate(target, touch=False)

    def touch(self, target: Any) -> None:
        self._activate(target, touch=True)

    def _activate(self, target: Any, *, touch: bool) -> None:
        # Outside dismissal runs first, like a capture-phase listener
        self.controller.handle_outside_activation(target)

        widget = self.widget_for(target)
        if widget is None:
            return

        if widget.trigger.contains(target):
            self._toggle(widget)
            return

        option = self._option_for(widget, target)
        if option is not None:
            self._select_option(widget, option)
            return

        tag_element = self._tag_element_for(widget, target)
        if tag_element is None:
            return
        marked = self._remove_marks.get(id(tag_element))
        if touch or (marked is not None and contains(marked[1], target)):
            self._remove_tag_element(widget, tag_element)

    def key_down(self, target: Any, key: str) -> None:
        """Route a key press; Escape applies page-wide."""
        if key == "Escape":
            active = self.controller.active
            if active is not None:
                self.controller.handle_escape(active.palette)
            return

        widget = self.widget_for(target)
        if widget is None:
            return

        if widget.trigger.contains(target):
            if key in ACTIVATION_KEYS:
                self._toggle(widget)
            return

        option = self._option_for(widget, target)
        if option is not None:
            if key in ACTIVATION_KEYS:
                self._select_option(widget, option)
            else:
                self.controller.rove(widget.palette, widget.palette.option_index(option), key)
            return

        tag_element = self._tag_element_for(widget, target)
        if tag_element is not None and key in REMOVAL_KEYS:
            self._remove_tag_element(widget, tag_element)

    def mouse_enter(self, target: Any) -> None:
        """Show the remove mark on a hovered applied tag."""
        widget = self.widget_for(target)
        tag_element = self._tag_element_for(widget, target) if widget else None
        if tag_element is None or id(tag_element) in self._remove_marks:
            return
        if not self.document.is_connected(tag_element):
            return

        value = _attribute(tag_element, "data-color").strip()
        if not value:
            return
        name = _attribute(tag_element, "data-color-name").strip() or generate_color_name(value)
        mark = build_remove_mark(Color(name=name, value=value))
        tag_element.append(mark)
        self._remove_marks[id(tag_element)] = (tag_element, mark)

    def mouse_leave(self, target: Any) -> None:
        """Hide the remove mark of an applied tag."""
        widget = self.widget_for(target)
        tag_element = self._tag_element_for(widget, target) if widget else None
        if tag_element is None:
            return
        marked = self._remove_marks.pop(id(tag_element), None)
        if marked is not None:
            self.document.remove(marked[1])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _toggle(self, widget: ItemWidget) -> None:
        self.controller.toggle(widget.item, widget.palette, trigger=widget.trigger)

    def _select_option(self, widget: ItemWidget, option: Tag) -> None:
        color = widget.palette.color_at(widget.palette.option_index(option))
        self.add_tag_to_item(widget.item, color)
        self.controller.toggle(widget.item, widget.palette, False, trigger=widget.trigger)
        widget.trigger.focus()

    def _remove_tag_element(self, widget: ItemWidget, tag_element: Tag) -> None:
        value = _attribute(tag_element, "data-color").strip()
        if value:
            self.remove_tag_from_item(widget.item, value)

    def _option_for(self, widget: ItemWidget, target: Any) -> Tag | None:
        for option in widget.palette.options:
            if contains(option, target):
                return option
        return None

    def _tag_element_for(self, widget: ItemWidget, target: Any) -> Tag | None:
        for element in self._tag_elements(widget.item):
            if contains(element, target):
                return element
        return None

    def _tag_elements(self, item: Tag) -> list[Tag]:
        """Applied-tag elements directly inside the item's own container."""
        container = self._find_container(item)
        if container is None:
            return []
        return child_elements(container, APPLIED_TAG_CLASS)

    def _find_container(self, item: Tag) -> Tag | None:
        """First tag container belonging to item rather than a nested item."""
        widget = self._widgets.get(id(item))
        if widget is not None and widget.item is item and contains(item, widget.container):
            return widget.container

        for container in select(item, f".{self.config.item_tags_class}"):
            if self._owner_of(container, item) is item:
                return container
        return None

    def _owner_of(self, node: Tag, item: Tag) -> Tag | None:
        """Nearest ancestor of node that is item or another taggable item."""
        current = node.parent
        while current is not None and current is not item:
            if has_class(current, self.config.taggable_item_class):
                return current
            current = current.parent
        return current

    def _require_container(self, item: Tag) -> Tag:
        container = self._find_container(item)
        if container is None:
            raise MissingContainerError(
                f"Item tags container '.{self.config.item_tags_class}' "
                f"not found in {describe(item)}"
            )
        return container


def _attribute(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    return value if isinstance(value, str) else " ".join(value)
