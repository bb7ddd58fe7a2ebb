"""ANSI colours for progress components.

Components build plain strings, so styles are rendered straight to ANSI
escape sequences with Rich rather than going through a ``Console``.
Colour output is decided once (see ``cli.rich_output.should_use_color``) and
can be toggled with ``enable()`` / ``disable()``; when disabled every helper
returns its input unchanged.
"""

from __future__ import annotations

from rich.color import ColorSystem
from rich.style import Style

_enabled: bool | None = None


def is_enabled() -> bool:
    """Return whether colour codes are currently emitted."""
    global _enabled
    if _enabled is None:
        from deploy_progress.cli.rich_output import should_use_color

        _enabled = should_use_color()
    return _enabled


def enable() -> None:
    global _enabled
    _enabled = True


def disable() -> None:
    global _enabled
    _enabled = False


def stylize(text: str, style: str) -> str:
    """Wrap ``text`` in the ANSI codes for a Rich style definition."""
    if not text or not is_enabled():
        return text
    return Style.parse(style).render(text, color_system=ColorSystem.STANDARD)


def faint(text: str) -> str:
    return stylize(text, "dim")


def red(text: str) -> str:
    return stylize(text, "bold red")


def dull_red(text: str) -> str:
    return stylize(text, "red")


def green(text: str) -> str:
    return stylize(text, "green")


def highlight_code(text: str) -> str:
    """Style an inline shell command."""
    return stylize(text, "cyan")


def emphasize(text: str) -> str:
    return stylize(text, "bold")
