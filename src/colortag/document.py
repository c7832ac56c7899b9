"""Host page: a BeautifulSoup tree plus the input focus.

Elements are plain bs4 ``Tag`` objects. bs4 compares tags by their markup,
so everything here that asks "is this the same element" walks parents and
compares with ``is``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from bs4 import BeautifulSoup, Doctype, Tag
from soupsieve import SelectorSyntaxError

from .exceptions import SelectorError

PARSER = "html.parser"

# Detached tags are created here and then moved into a page
_FACTORY = BeautifulSoup("", PARSER)


# ============================================================================
# Tag helpers
# ============================================================================


def new_element(
    name: str = "div",
    *,
    classes: Sequence[str] = (),
    attrs: Mapping[str, str] | None = None,
    style: Mapping[str, str] | None = None,
    text: str = "",
) -> Tag:
    """Create a detached element."""
    tag = _FACTORY.new_tag(name)
    for key, value in (attrs or {}).items():
        tag[key] = value
    if classes:
        tag["class"] = list(dict.fromkeys(classes))
    if style:
        set_style(tag, style)
    if text:
        tag.string = text
    return tag


def element_id(tag: Any) -> str | None:
    """The element's own id attribute, if it is a non-empty string."""
    if not isinstance(tag, Tag):
        return None
    value = tag.get("id")
    return value if isinstance(value, str) and value else None


def describe(tag: Any) -> str:
    """Short form for log messages, e.g. ``<li#doc-1.taggable-item>``."""
    if not isinstance(tag, Tag):
        return repr(tag)
    ident = element_id(tag)
    classes = "".join(f".{c}" for c in class_list(tag))
    return f"<{tag.name}{'#' + ident if ident else ''}{classes}>"


def class_list(tag: Tag) -> list[str]:
    value = tag.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(tag: Tag, name: str) -> bool:
    return name in class_list(tag)


def add_class(tag: Tag, name: str) -> None:
    classes = class_list(tag)
    if name not in classes:
        tag["class"] = [*classes, name]


def remove_class(tag: Tag, name: str) -> None:
    classes = [c for c in class_list(tag) if c != name]
    if classes:
        tag["class"] = classes
    elif tag.has_attr("class"):
        del tag["class"]


def style_of(tag: Tag) -> dict[str, str]:
    """Inline style declarations as a property -> value mapping."""
    declarations: dict[str, str] = {}
    for part in str(tag.get("style") or "").split(";"):
        prop, sep, value = part.partition(":")
        if sep and prop.strip():
            declarations[prop.strip()] = value.strip()
    return declarations


def set_style(tag: Tag, declarations: Mapping[str, str]) -> None:
    style = style_of(tag)
    style.update(declarations)
    tag["style"] = "; ".join(f"{prop}: {value}" for prop, value in style.items())


def contains(ancestor: Tag, node: Any) -> bool:
    """True if node is ancestor itself or lies inside it."""
    current = node if isinstance(node, Tag) else None
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent
    return False


def select(root: Tag, selector: str) -> list[Tag]:
    """CSS select below root, with syntax errors as SelectorError."""
    if not selector.strip():
        raise SelectorError(f"Invalid selector '{selector}': empty selector")
    try:
        return list(root.select(selector))
    except SelectorSyntaxError as e:
        raise SelectorError(f"Invalid selector '{selector}': {e}") from e


def select_one(root: Tag, selector: str) -> Tag | None:
    found = select(root, selector)
    return found[0] if found else None


def child_elements(tag: Tag, class_name: str) -> list[Tag]:
    """Direct children carrying the class, in document order."""
    return [child for child in tag.find_all(True, recursive=False) if has_class(child, class_name)]


# ============================================================================
# Document
# ============================================================================


class Document:
    """A parsed page, normalized to have <html>, <head> and <body>.

    Tracks which element has input focus; focus only moves to elements
    connected to this page.
    """

    def __init__(self, markup: str = "", title: str = "") -> None:
        self.soup = BeautifulSoup(markup, PARSER)
        self._ensure_structure()
        if title and self.soup.title is None:
            title_tag = self.soup.new_tag("title")
            title_tag.string = title
            self.head.append(title_tag)
        self.focused: Tag | None = None

    def _ensure_structure(self) -> None:
        soup = self.soup
        html = soup.html
        if html is None:
            html = soup.new_tag("html")
            for node in list(soup.contents):
                if not isinstance(node, Doctype):
                    html.append(node.extract())
            soup.append(html)

        if soup.body is None:
            body = soup.new_tag("body")
            for node in list(html.contents):
                if not (isinstance(node, Tag) and node.name == "head"):
                    body.append(node.extract())
            html.append(body)

        if soup.head is None:
            html.insert(0, soup.new_tag("head"))

    @property
    def body(self) -> Tag:
        body = self.soup.body
        assert body is not None
        return body

    @property
    def head(self) -> Tag:
        head = self.soup.head
        assert head is not None
        return head

    @property
    def title(self) -> str:
        title = self.soup.title
        return title.get_text().strip() if title is not None else ""

    def query_selector_all(self, selector: str) -> list[Tag]:
        return select(self.body, selector)

    def query_selector(self, selector: str) -> Tag | None:
        return select_one(self.body, selector)

    def get_element_by_id(self, element_id: str) -> Tag | None:
        return self.body.find(id=element_id)

    def is_connected(self, tag: Tag) -> bool:
        return contains(self.soup, tag)

    def focus(self, tag: Tag) -> None:
        if self.is_connected(tag):
            self.focused = tag

    def remove(self, tag: Tag) -> None:
        """Detach an element, dropping focus if it was inside."""
        if self.focused is not None and contains(tag, self.focused):
            self.focused = None
        tag.extract()
