"""Custom exceptions for colortag."""


class ColortagError(Exception):
    """Base exception for all colortag errors."""

    pass


class ValidationError(ColortagError):
    """Raised when configuration or page data fails validation."""

    pass


class ParseError(ColortagError):
    """Raised when YAML parsing fails."""

    pass


class SelectorError(ColortagError):
    """Raised when a CSS-like selector cannot be parsed."""

    pass


class MissingContainerError(ColortagError):
    """Raised when a taggable item has no tag container."""

    pass
