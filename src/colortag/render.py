"""HTML output for a tagged document."""

from __future__ import annotations

import copy

from bs4 import Doctype

from .document import Document

# Just enough CSS to make tags and palettes visible
STYLESHEET = """\
.taggable-item { position: relative; padding: 4px 0; }
.item-add-tag-button { background: none; border: none; cursor: pointer; }
.item-tags { display: inline-flex; gap: 3px; vertical-align: middle; }
.applied-tag { width: 12px; height: 12px; border-radius: 50%; position: relative; }
.remove-tag-mark { position: absolute; inset: 0; display: flex; align-items: center; justify-content: center; }
.item-color-palette { display: none; position: absolute; gap: 4px; padding: 4px; background: #fff; box-shadow: 0 1px 4px rgba(0, 0, 0, 0.3); }
.item-color-palette.active { display: flex; }
.color-tag-option { width: 16px; height: 16px; border-radius: 50%; cursor: pointer; }
"""


def render_document(document: Document, *, standalone: bool = True) -> str:
    """Render the document body, or a complete HTML page when standalone.

    The document itself is left untouched; the standalone page gets its
    charset, title and stylesheet added to a copy.
    """
    if not standalone:
        return document.body.prettify()

    page = copy.copy(document.soup)
    head = page.head
    assert head is not None

    meta = page.new_tag("meta", attrs={"charset": "utf-8"})
    head.insert(0, meta)
    if page.title is None:
        title = page.new_tag("title")
        title.string = "colortag"
        meta.insert_after(title)
    style = page.new_tag("style")
    style.string = "\n" + STYLESHEET
    head.append(style)

    if not any(isinstance(node, Doctype) for node in page.contents):
        page.insert(0, Doctype("html"))
    return page.prettify()
