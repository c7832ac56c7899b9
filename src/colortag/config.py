"""Configuration for colortag (colortag_config.yaml).

A config file chooses the palette and the class names used to find
taggable items and their tag containers:

    colors:
      - {name: Red, value: "#ec8383"}
      - "#84cdef"
    taggable_selector: ".card"
    taggable_item_class: taggable-item
    item_tags_class: item-tags
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .palette import ColorSpec

CONFIG_FILENAME = "colortag_config.yaml"

# Config path chosen on the command line, consulted during discovery
_cli_config_path: Path | None = None


class ColorEntry(BaseModel):
    """A palette entry written as a mapping."""

    name: str | None = None
    value: str = Field(validation_alias=AliasChoices("value", "color"))

    @field_validator("value")
    @classmethod
    def value_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("color value must not be empty")
        return v.strip()


class ColorTagConfig(BaseModel):
    """Palette and naming options for a ColorTag instance."""

    colors: list[str | ColorEntry] | None = None  # None = default palette
    taggable_selector: str | None = None
    taggable_item_class: str = "taggable-item"
    item_tags_class: str = Field(
        default="item-tags",
        validation_alias=AliasChoices("item_tags_class", "tags_container_class"),
    )

    @field_validator("colors")
    @classmethod
    def colors_not_empty(cls, v: list[str | ColorEntry] | None) -> list[str | ColorEntry] | None:
        if v is not None and not v:
            raise ValueError("colors must list at least one color (omit it for the defaults)")
        return v

    @field_validator("taggable_item_class", "item_tags_class")
    @classmethod
    def single_class_name(cls, v: str) -> str:
        if not v or v.startswith(".") or any(ch.isspace() for ch in v):
            raise ValueError(f"'{v}' is not a single CSS class name")
        return v

    def color_specs(self) -> list[ColorSpec] | None:
        """Colors in the form the palette registry accepts, or None."""
        if self.colors is None:
            return None
        specs: list[ColorSpec] = []
        for entry in self.colors:
            if isinstance(entry, str):
                specs.append(entry)
            elif entry.name:
                specs.append({"name": entry.name, "value": entry.value})
            else:
                specs.append({"value": entry.value})
        return specs


def parse_config(data: dict[str, Any]) -> ColorTagConfig:
    """Validate already-loaded config data.

    Raises:
        ValidationError: If the data does not describe a valid config
    """
    try:
        return ColorTagConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid colortag config: {e}") from e


def load_config(config_path: Path | str) -> ColorTagConfig:
    """Load configuration from a YAML file.

    An empty file yields the defaults.

    Raises:
        ParseError: If the file is missing or is not valid YAML
        ValidationError: If the config is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ParseError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if data is None:
        return ColorTagConfig()
    if not isinstance(data, dict):
        raise ValidationError("Config must contain a mapping at the root level")
    return parse_config(data)  # type: ignore[arg-type]


def set_cli_config_path(path: Path | None) -> None:
    """Remember the --config path for later discovery."""
    global _cli_config_path  # noqa: PLW0603
    _cli_config_path = path


def get_cli_config_path() -> Path | None:
    return _cli_config_path


def discover_config(
    page_path: Path | str | None = None,
    config_path: Path | None = None,
) -> ColorTagConfig:
    """Find and load the config that applies to a page.

    Search order:
    1. Explicit config_path argument
    2. Path given on the command line (--config)
    3. page directory / colortag_config.yaml
    4. Current directory / colortag_config.yaml

    Falls back to the defaults when no file is found.
    """
    if config_path is not None:
        return load_config(config_path)

    if _cli_config_path is not None:
        return load_config(_cli_config_path)

    candidates: list[Path] = []
    if page_path is not None:
        candidates.append(Path(page_path).parent / CONFIG_FILENAME)
    candidates.append(Path(CONFIG_FILENAME))

    for candidate in candidates:
        if candidate.exists():
            return load_config(candidate)
    return ColorTagConfig()
