"""Logging configuration for colortag with custom verbosity levels."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

# Custom levels between standard logging levels
CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30) - tags and palettes changing
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20) - lookups and no-ops

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_QUIET = 0  # Warnings and errors
VERBOSITY_CHANGES = 1  # Tag and palette state changes
VERBOSITY_CHECKS = 2  # Lookups, no-ops, routing decisions
VERBOSITY_DEBUG = 3  # Everything

_LEVELS = {
    VERBOSITY_QUIET: logging.WARNING,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class ColortagLogger(logging.Logger):
    """Logger with semantic verbosity methods.

    - changes(): a tag was added/removed or a palette opened/closed
    - checks(): a lookup, a no-op, an input routed somewhere
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a state change (verbosity level 1)."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a check (verbosity level 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> ColortagLogger:
    """Return the shared colortag logger.

    Configure it with setup_logger() before first use; until then it
    behaves like any unconfigured logger.
    """
    logging.setLoggerClass(ColortagLogger)
    logger = logging.getLogger("colortag")
    assert isinstance(logger, ColortagLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the colortag logger.

    Safe to call repeatedly; existing handlers are replaced.

    Args:
        verbosity: 0=warnings/errors, 1=changes, 2=checks, 3=debug
        stream: Output stream, sys.stderr when omitted
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_LEVELS.get(verbosity, logging.WARNING))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and restore the default level (used between tests)."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
