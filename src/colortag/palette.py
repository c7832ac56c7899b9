"""Color palette registry: the ordered set of colors items can be tagged with."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping

from .exceptions import ValidationError
from .logger import get_logger
from .models import Color

logger = get_logger()

# Remove marks are drawn white unless the swatch is too light for it
MARK_LIGHT = "#ffffff"
MARK_DARK = "#000000"
LIGHT_SWATCH_LUMINANCE = 0.5

_HEX_SWATCH = re.compile(r"#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")

# Finder-style label colors
DEFAULT_COLORS: tuple[Color, ...] = (
    Color("Gray", "#c8c8c8"),
    Color("Red", "#ec8383"),
    Color("Orange", "#f7be71"),
    Color("Yellow", "#fefd88"),
    Color("Green", "#9ed881"),
    Color("Blue", "#84cdef"),
    Color("Purple", "#ca99de"),
)

COMMON_COLOR_NAMES: dict[str, str] = {
    "#ff0000": "Red",
    "#00ff00": "Green",
    "#0000ff": "Blue",
    "#ffff00": "Yellow",
    "#00ffff": "Cyan",
    "#ff00ff": "Magenta",
    "#ffffff": "White",
    "#000000": "Black",
    "#808080": "Gray",
}

ColorSpec = str | Color | Mapping[str, str]


def generate_color_name(value: str) -> str:
    """Name a bare color value.

    Well-known hex values get their common name; anything else is named
    after the value itself with '#' replaced by 'Color_'.

    Examples:
        generate_color_name("#FF0000") -> "Red"
        generate_color_name("#123abc") -> "Color_123abc"
    """
    common = COMMON_COLOR_NAMES.get(value.strip().lower())
    if common:
        return common
    return value.strip().replace("#", "Color_")


def normalize_color(spec: ColorSpec) -> Color:
    """Turn a raw value, a {name, value} mapping or a Color into a Color.

    Mappings accept 'color' as an alias for 'value'. A mapping without a
    name is named like a raw value.

    Raises:
        ValidationError: If no usable value is present
    """
    if isinstance(spec, Color):
        return spec

    if isinstance(spec, Mapping):
        value = spec.get("value") or spec.get("color")
        name = spec.get("name")
    else:
        value = spec
        name = None

    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Color entry {spec!r} has no color value")
    value = value.strip()

    try:
        return Color(name=name.strip() if name else generate_color_name(value), value=value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def swatch_luminance(value: str) -> float | None:
    """Relative luminance (0 to 1) of a hex swatch, or None for other values."""
    match = _HEX_SWATCH.fullmatch(value.strip())
    if match is None:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(d + d for d in digits)

    total = 0.0
    for weight, start in ((0.2126, 0), (0.7152, 2), (0.0722, 4)):
        srgb = int(digits[start : start + 2], 16) / 255
        linear = srgb / 12.92 if srgb <= 0.03928 else ((srgb + 0.055) / 1.055) ** 2.4
        total += weight * linear
    return total


def remove_mark_color(swatch: Color | str) -> str:
    """Stroke color for the x drawn over an applied tag on hover.

    Light swatches (yellow, gray) get a black mark so it stays visible.
    Named CSS colors and rgb() values can't be measured and keep the
    white mark.
    """
    value = swatch.value if isinstance(swatch, Color) else swatch
    luminance = swatch_luminance(value)
    if luminance is not None and luminance >= LIGHT_SWATCH_LUMINANCE:
        return MARK_DARK
    return MARK_LIGHT


class ColorPalette:
    """Ordered registry of available tag colors.

    The registry is replaced wholesale by configure(); individual colors
    are immutable. Lookups are case-insensitive and never raise.
    """

    def __init__(self, colors: Iterable[ColorSpec] | None = None) -> None:
        self._colors: tuple[Color, ...] = ()
        self.configure(DEFAULT_COLORS if colors is None else colors)

    def configure(self, colors: Iterable[ColorSpec]) -> tuple[Color, ...]:
        """Replace the registry with the normalized colors.

        Entries repeating an earlier value are dropped with a warning.

        Raises:
            ValidationError: If an entry has no value or nothing remains
        """
        normalized: list[Color] = []
        seen: set[Color] = set()
        for spec in colors:
            color = normalize_color(spec)
            if color in seen:
                logger.warning(f"Duplicate palette color '{color.value}' ignored")
                continue
            seen.add(color)
            normalized.append(color)

        if not normalized:
            raise ValidationError("Color palette must contain at least one color")

        self._colors = tuple(normalized)
        logger.checks(
            "Palette configured: " + ", ".join(str(color) for color in self._colors)
        )
        return self._colors

    @property
    def colors(self) -> tuple[Color, ...]:
        return self._colors

    def resolve(self, token: str) -> Color | None:
        """Find a color by name, then by value (both case-insensitive).

        Returns None when nothing matches; callers decide how loudly to
        report the miss.
        """
        token = token.strip()
        if not token:
            return None
        for color in self._colors:
            if color.has_name(token):
                return color
        for color in self._colors:
            if color.has_value(token):
                return color
        return None

    def index_of(self, color: Color) -> int | None:
        """Position of a color (by value) in the palette."""
        for index, candidate in enumerate(self._colors):
            if candidate == color:
                return index
        return None

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[Color]:
        return iter(self._colors)

    def __getitem__(self, index: int) -> Color:
        return self._colors[index]

    def __repr__(self) -> str:
        return f"ColorPalette({list(self._colors)!r})"
