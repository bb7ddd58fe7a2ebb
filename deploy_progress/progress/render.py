"""Live render loop.

``render`` redraws a dynamic renderer in place every interval until the
renderer is done: each frame erases the lines written by the previous one and
writes the new frame, so the terminal always shows the latest state.  The
cursor is hidden while the loop runs and restored on every exit path,
including cancellation of the task running the loop.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Any

from deploy_progress.progress.components import DynamicRenderer, Renderer
from deploy_progress.term import cursor

logger = logging.getLogger(__name__)


def _flush(out: Any) -> None:
    flush = getattr(out, "flush", None)
    if flush is not None:
        flush()


def erase_and_render(out: Any, renderer: Renderer, prev_num_lines: int) -> int:
    """Replace the previous frame of ``prev_num_lines`` lines with a new one.

    The frame is rendered before anything is erased, so a renderer that
    raises leaves the previous frame on screen.

    Returns:
        Number of lines of the new frame.
    """
    buf = io.StringIO()
    num_lines = renderer.render(buf)
    cursor.erase_lines_above(out, prev_num_lines)
    out.write(buf.getvalue())
    _flush(out)
    return num_lines


async def render(
    out: Any,
    renderer: DynamicRenderer,
    *,
    interval: float | None = None,
) -> int:
    """Redraw ``renderer`` to ``out`` every ``interval`` seconds until done.

    Args:
        out: Sink with ``write`` and ``flush``; cursor control is only
            emitted when it is a terminal.
        renderer: Root of the display.
        interval: Seconds between frames, by default from
            ``settings.get_render_interval``.

    Returns:
        Number of lines of the final frame.

    Raises:
        asyncio.CancelledError: If the task running the loop is cancelled;
            no further frame is written.
    """
    if interval is None:
        from deploy_progress import settings

        interval = settings.get_render_interval()

    cursor.hide(out)
    done = asyncio.ensure_future(renderer.done())
    num_lines = 0
    try:
        while True:
            finished, _ = await asyncio.wait({done}, timeout=interval)
            if finished:
                # Propagate a failure of the renderer's done().
                done.result()
                num_lines = erase_and_render(out, renderer, num_lines)
                logger.debug("Rendering finished with %d lines", num_lines)
                return num_lines
            num_lines = erase_and_render(out, renderer, num_lines)
    finally:
        if not done.done():
            done.cancel()
        cursor.show(out)
        _flush(out)
