"""Tests for HTML output."""

from __future__ import annotations

from colortag.document import Document, new_element
from colortag.render import STYLESHEET, render_document
from colortag.surface import ColorTag
from tests.conftest import taggable_item


def test_render_fragment() -> None:
    document = Document()
    item = new_element("li", classes=["x", "y"], attrs={"id": "a"}, text="A & B")
    item.append(new_element("span", style={"background-color": "#fff"}))
    document.body.append(item)

    html = render_document(document, standalone=False)

    assert html.startswith("<body>")
    assert '<li id="a" class="x y">' in html
    assert "A &amp; B" in html
    assert '<span style="background-color: #fff">' in html
    assert "<style>" not in html


def test_standalone_page_has_stylesheet() -> None:
    document = Document(title="Tags <demo>")
    taggable_item(document, "doc-1", initial_tags="red")
    ColorTag(document).init()

    html = render_document(document)

    assert html.startswith("<!DOCTYPE html>")
    assert '<meta charset="utf-8"/>' in html
    assert "Tags &lt;demo&gt;" in html
    assert ".item-color-palette.active { display: flex; }" in html
    assert 'class="applied-tag"' in html
    assert 'aria-label="Remove Red tag"' in html
    assert html.rstrip().endswith("</html>")


def test_standalone_render_leaves_document_alone() -> None:
    document = Document("<p>Hello</p>")

    render_document(document)

    assert document.head.find("style") is None
    assert document.head.find("meta") is None


def test_untitled_page_gets_default_title() -> None:
    html = render_document(Document("<p>Hello</p>"))

    assert "colortag" in html.split("</title>")[0]
    assert STYLESHEET.splitlines()[0] in html
