"""Automatic terminal capability detection for progress output.

Centralizes the decision of whether progress output may carry ANSI colour
codes.

Colour detection priority:
1. ``DEPLOY_PROGRESS_COLOR`` env var: explicit override (``0``/``false``/``no``
   to disable, ``1``/``true``/``yes`` to force enable)
2. ``NO_COLOR`` env var: standard convention, disables colour
3. ``stderr.isatty()`` is false in pipes, redirects, cron, disables colour
"""

from __future__ import annotations

import os
import sys


def should_use_color() -> bool:
    """Determine whether progress output should be coloured.

    Progress is written to stderr, so that is the stream that gets checked.
    """
    # 1. Explicit override via env var
    override = os.environ.get("DEPLOY_PROGRESS_COLOR", "").strip().lower()
    if override in ("0", "false", "no"):
        return False
    if override in ("1", "true", "yes"):
        return True

    # 2. NO_COLOR convention (https://no-color.org/)
    if os.environ.get("NO_COLOR") is not None:
        return False

    # 3. TTY check: pipes, redirects, cron all fail this
    try:
        if not sys.stderr.isatty():
            return False
    except (AttributeError, ValueError):
        return False

    return True
