"""Palette exclusivity: at most one color palette is open at a time."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .logger import get_logger

logger = get_logger()

# Keys that move focus between the options of an open palette
ROVING_STEPS: dict[str, int] = {
    "ArrowRight": 1,
    "ArrowDown": 1,
    "ArrowLeft": -1,
    "ArrowUp": -1,
}


# ============================================================================
# Public Protocols
# ============================================================================


class PaletteView(Protocol):
    """The popup listing color options for one item."""

    @property
    def option_count(self) -> int:
        """Number of selectable color options."""
        ...

    def set_open(self, is_open: bool) -> None:
        """Show or clear the palette's active-visual markers."""
        ...

    def contains(self, target: Any) -> bool:
        """Whether an input target lies inside the palette."""
        ...

    def focus_option(self, index: int) -> None:
        """Move input focus to the option at index."""
        ...


class TriggerView(Protocol):
    """The control that opens an item's palette."""

    def set_expanded(self, expanded: bool) -> None:
        """Mirror the palette state on the trigger."""
        ...

    def contains(self, target: Any) -> bool:
        """Whether an input target lies inside the trigger."""
        ...

    def focus(self) -> None:
        """Move input focus to the trigger."""
        ...


# ============================================================================
# State
# ============================================================================


class PaletteState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class ActivePalette:
    """The one open palette, with the item and trigger it belongs to."""

    item: Any
    palette: PaletteView
    trigger: TriggerView | None = None


def step_index(index: int, count: int, step: int) -> int:
    """Circular index arithmetic for keyboard roving.

    step_index(n - 1, n, 1) == 0 and step_index(0, n, -1) == n - 1.
    """
    if count <= 0:
        raise ValueError("Cannot rove through an empty palette")
    return (index + step + count) % count


class PaletteController:
    """Owns the ActivePalette and funnels every open/close through toggle().

    A palette is open exactly when it is the ActivePalette, so two palettes
    can never both be open. Mouse, touch and keyboard input all end up in
    toggle(), handle_outside_activation() or handle_escape().

    ``describe`` renders items and input targets for log messages.
    """

    def __init__(self, describe: Callable[[Any], str] = repr) -> None:
        self._active: ActivePalette | None = None
        self._describe = describe

    @property
    def active(self) -> ActivePalette | None:
        return self._active

    def state_of(self, palette: PaletteView) -> PaletteState:
        if self._active is not None and self._active.palette is palette:
            return PaletteState.OPEN
        return PaletteState.CLOSED

    def is_open(self, palette: PaletteView) -> bool:
        return self.state_of(palette) is PaletteState.OPEN

    def toggle(
        self,
        item: Any,
        palette: PaletteView,
        force_state: bool | None = None,
        *,
        trigger: TriggerView | None = None,
    ) -> PaletteState:
        """Open or close an item's palette.

        Without force_state the palette flips; with it the palette is driven
        to that state. Opening closes whichever palette was active first.
        Opening the active palette or closing an inactive one does nothing.

        Returns:
            The palette's state after the call
        """
        currently_open = self.is_open(palette)
        should_open = (not currently_open) if force_state is None else force_state

        if should_open:
            if not currently_open:
                self._open(item, palette, trigger)
        elif currently_open:
            self._close()
        else:
            logger.checks(f"Palette for {self._describe(item)} already closed")

        return self.state_of(palette)

    def close_active(self) -> bool:
        """Close the active palette, if any. Returns True if one was closed."""
        if self._active is None:
            return False
        self._close()
        return True

    def handle_outside_activation(self, target: Any) -> bool:
        """Dismiss the active palette when input lands outside it.

        Activation inside the palette or on its own trigger is left alone so
        option selection and the trigger's own toggle still work.

        Returns:
            True if the active palette was closed
        """
        active = self._active
        if active is None:
            return False
        if active.palette.contains(target):
            return False
        if active.trigger is not None and active.trigger.contains(target):
            return False

        logger.checks(f"Outside activation on {self._describe(target)}")
        self._close()
        return True

    def handle_escape(self, palette: PaletteView) -> bool:
        """Close the palette if it is the active one and refocus its trigger."""
        active = self._active
        if active is None or active.palette is not palette:
            return False

        self._close()
        if active.trigger is not None:
            active.trigger.focus()
        return True

    def rove(self, palette: PaletteView, index: int, key: str) -> int | None:
        """Move focus among an open palette's options for an arrow key.

        Returns:
            The newly focused option index, or None if the key is not a
            roving key or the palette has no options
        """
        step = ROVING_STEPS.get(key)
        count = palette.option_count
        if step is None or count == 0:
            return None
        new_index = step_index(index, count, step)
        palette.focus_option(new_index)
        return new_index

    def _open(self, item: Any, palette: PaletteView, trigger: TriggerView | None) -> None:
        previous = self._active
        if previous is not None:
            self._clear_markers(previous)
            logger.changes(
                f"Closed palette for {self._describe(previous.item)} (another palette opened)"
            )

        palette.set_open(True)
        if trigger is not None:
            trigger.set_expanded(True)
        self._active = ActivePalette(item=item, palette=palette, trigger=trigger)
        logger.changes(f"Opened palette for {self._describe(item)}")

        if palette.option_count:
            palette.focus_option(0)

    def _close(self) -> None:
        active = self._active
        if active is None:
            return
        self._active = None
        self._clear_markers(active)
        logger.changes(f"Closed palette for {self._describe(active.item)}")

    @staticmethod
    def _clear_markers(active: ActivePalette) -> None:
        active.palette.set_open(False)
        if active.trigger is not None:
            active.trigger.set_expanded(False)
