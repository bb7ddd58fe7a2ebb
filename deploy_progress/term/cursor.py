"""Cursor control for in-place redraws.

Escape sequences come from ``rich.control.Control``.  They are only written
when the sink is a terminal; for pipes and files every call is a no-op so the
rendered content still comes through untouched.
"""

from __future__ import annotations

from typing import Any

from rich.control import Control, ControlType

_ERASE_ENTIRE_LINE = 2


def is_terminal(out: Any) -> bool:
    """Return True if ``out`` reports that it is attached to a terminal."""
    try:
        return bool(out.isatty())
    except (AttributeError, ValueError, OSError):
        return False


def hide(out: Any) -> None:
    if is_terminal(out):
        out.write(str(Control.show_cursor(False)))


def show(out: Any) -> None:
    if is_terminal(out):
        out.write(str(Control.show_cursor(True)))


def erase_lines_above(out: Any, num_lines: int) -> None:
    """Move up and clear ``num_lines`` lines, then clear the current line.

    The cursor ends at the start of the first erased line, ready for the
    next frame to be written over it.
    """
    if not is_terminal(out):
        return
    up_and_erase = Control(
        (ControlType.CURSOR_UP, 1),
        (ControlType.ERASE_IN_LINE, _ERASE_ENTIRE_LINE),
    )
    erase = Control((ControlType.ERASE_IN_LINE, _ERASE_ENTIRE_LINE))
    out.write(str(up_and_erase) * num_lines + str(erase))
