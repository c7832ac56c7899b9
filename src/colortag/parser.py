"""Loading of HTML pages and YAML interaction scripts."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .document import Document
from .exceptions import ParseError, ValidationError
from .schemas import ScriptSchema


def _read_text(file_path: Path | str) -> str:
    path = Path(file_path)
    if not path.exists():
        raise ParseError(f"File not found: {file_path}")
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"Failed to read {file_path} as UTF-8: {e}") from e


class PageParser:
    """Parser for host pages written as HTML."""

    def parse_file(self, file_path: Path | str) -> Document:
        """Parse an HTML file into a Document."""
        return self.parse_markup(_read_text(file_path))

    def parse_markup(self, markup: str) -> Document:
        """Build a Document from HTML markup.

        Raises:
            ValidationError: If two elements share an id
        """
        document = Document(markup)

        seen_ids: set[str] = set()
        for node in document.soup.find_all(id=True):
            node_id = node["id"]
            if node_id in seen_ids:
                raise ValidationError(f"Duplicate element id '{node_id}'")
            seen_ids.add(node_id)

        return document


def load_page(path: Path | str) -> Document:
    """Load an HTML page."""
    return PageParser().parse_file(path)


def load_script(path: Path | str) -> ScriptSchema:
    """Load an interaction script file."""
    try:
        data: Any = yaml.safe_load(_read_text(path))
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("YAML must contain a dictionary at the root level")
    try:
        return ScriptSchema(**data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid script structure: {e}") from e
