"""Tests for config loading and discovery."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from colortag.config import (
    CONFIG_FILENAME,
    ColorTagConfig,
    discover_config,
    load_config,
    parse_config,
    set_cli_config_path,
)
from colortag.exceptions import ParseError, ValidationError


@pytest.fixture(autouse=True)
def no_cli_config() -> Iterator[None]:
    set_cli_config_path(None)
    yield
    set_cli_config_path(None)


class TestParseConfig:
    def test_defaults(self) -> None:
        config = ColorTagConfig()
        assert config.colors is None
        assert config.color_specs() is None
        assert config.taggable_item_class == "taggable-item"
        assert config.item_tags_class == "item-tags"

    def test_color_forms(self) -> None:
        config = parse_config(
            {"colors": ["#ff0000", {"name": "Sky", "value": "#84cdef"}, {"color": "#9ed881"}]}
        )
        assert config.color_specs() == [
            "#ff0000",
            {"name": "Sky", "value": "#84cdef"},
            {"value": "#9ed881"},
        ]

    def test_container_class_alias(self) -> None:
        assert parse_config({"tags_container_class": "tag-box"}).item_tags_class == "tag-box"

    def test_empty_colors_rejected(self) -> None:
        with pytest.raises(ValidationError, match="at least one color"):
            parse_config({"colors": []})

    def test_blank_color_value_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            parse_config({"colors": [{"name": "Nothing", "value": "  "}]})

    @pytest.mark.parametrize("name", [".taggable", "two words", ""])
    def test_class_names_validated(self, name: str) -> None:
        with pytest.raises(ValidationError, match="CSS class name"):
            parse_config({"taggable_item_class": name})


class TestLoadConfig:
    def test_load(self, fixtures_dir: Path) -> None:
        config = load_config(fixtures_dir / "red_blue_config.yaml")
        assert config.color_specs() == [
            {"name": "Red", "value": "#ec8383"},
            {"name": "Blue", "value": "#84cdef"},
        ]

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("")
        assert load_config(path) == ColorTagConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="Config file not found"):
            load_config(tmp_path / CONFIG_FILENAME)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("- red\n")
        with pytest.raises(ValidationError, match="mapping at the root level"):
            load_config(path)

    def test_bad_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("colors: [red\n")
        with pytest.raises(ParseError, match="Failed to parse YAML"):
            load_config(path)


class TestDiscoverConfig:
    def test_explicit_path_wins(self, tmp_path: Path, fixtures_dir: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("taggable_item_class: from-page-dir\n")
        config = discover_config(tmp_path / "page.html", fixtures_dir / "red_blue_config.yaml")
        assert config.taggable_item_class == "taggable-item"
        assert config.colors is not None

    def test_cli_path_before_page_dir(self, tmp_path: Path, fixtures_dir: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("taggable_item_class: from-page-dir\n")
        set_cli_config_path(fixtures_dir / "red_blue_config.yaml")
        assert discover_config(tmp_path / "page.html").taggable_item_class == "taggable-item"

    def test_page_directory(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("taggable_item_class: from-page-dir\n")
        assert discover_config(tmp_path / "page.html").taggable_item_class == "from-page-dir"

    def test_current_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("item_tags_class: from-cwd\n")
        monkeypatch.chdir(tmp_path)
        assert discover_config().item_tags_class == "from-cwd"

    def test_defaults_when_nothing_found(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert discover_config(tmp_path / "sub" / "page.yaml") == ColorTagConfig()
