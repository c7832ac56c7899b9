"""Data models for colortag."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class Color:
    """A named tag color.

    Values are opaque color strings (hex, CSS names, rgb()...) compared
    case-insensitively, so ``Color("Red", "#EC8383")`` and
    ``Color("Rose", "#ec8383")`` are the same tag color.
    """

    name: str
    value: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError(f"Color {self.value!r} must have a non-empty name")
        if not self.value or not self.value.strip():
            raise ValueError(f"Color {self.name!r} must have a non-empty value")

    @property
    def key(self) -> str:
        """Normalized value used for comparisons."""
        return self.value.lower()

    def has_value(self, value: str) -> bool:
        return self.key == value.strip().lower()

    def has_name(self, name: str) -> bool:
        return self.name.lower() == name.strip().lower()

    def __hash__(self) -> int:
        return hash(self.key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Color):
            return NotImplemented
        return self.key == other.key

    def __str__(self) -> str:
        return f"{self.name} ({self.value})"


@dataclass(frozen=True)
class AppliedTag:
    """A color applied to one item."""

    color: Color
    applied_at: datetime

    @property
    def name(self) -> str:
        return self.color.name

    @property
    def value(self) -> str:
        return self.color.value


class Outcome(str, Enum):
    """What a tag mutation actually did."""

    APPLIED = "applied"
    REMOVED = "removed"
    NOOP = "noop"  # duplicate add or absent remove
    UNRESOLVED = "unresolved"  # token names no palette color
    ABORTED = "aborted"  # item lacks its tag container


@dataclass(frozen=True)
class TagChange:
    """Result of add/remove on an item.

    ``tag`` is the record that was applied or removed. For a duplicate add
    it is the already-present record; otherwise it is None when nothing
    changed.
    """

    outcome: Outcome
    tag: AppliedTag | None = None

    @property
    def changed(self) -> bool:
        return self.outcome in (Outcome.APPLIED, Outcome.REMOVED)
