"""Project settings loaded from pyproject.toml [tool.deploy-progress] section.

Configuration is organized into subsections:
  [tool.deploy-progress.render]  redraw interval, CI interval, failure events

All settings support environment variable overrides (DEPLOY_PROGRESS_* prefix).
"""

import logging
import os
import sys
import tomllib
from functools import cache
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_RENDER_INTERVAL = 0.1  # Seconds between two frames of the live display.
WINDOWS_RENDER_INTERVAL = 0.5
CI_RENDER_INTERVAL = 30.0
DEFAULT_MAX_FAILURE_EVENTS = 5


@cache
def _load_pyproject_settings() -> dict:
    """Load settings from pyproject.toml [tool.deploy-progress] section.

    Walks up from the working directory to the first pyproject.toml.

    Returns:
        Dictionary of settings from pyproject.toml, empty dict if not found.
    """
    current = Path.cwd().resolve()
    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            break
        if current == current.parent:
            return {}
        current = current.parent

    try:
        data = tomllib.loads(candidate.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", candidate, exc)
        return {}
    return data.get("tool", {}).get("deploy-progress", {})


def _get_section(section: str) -> dict:
    """Get a subsection from [tool.deploy-progress.{section}]."""
    return _load_pyproject_settings().get(section, {})


def _parse_seconds(name: str, value: str | float) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from exc
    if seconds <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return seconds


# ─── Render settings ───────────────────────────────────────────────────────


def is_ci() -> bool:
    """Whether the process runs under CI (``CI`` env var set)."""
    return os.getenv("CI", "").strip().lower() not in ("", "0", "false", "no")


def get_ci_render_interval() -> float:
    """Seconds between frames when running under CI.

    Priority: DEPLOY_PROGRESS_CI_RENDER_INTERVAL → [render].ci-interval → 30.
    """
    if env := os.getenv("DEPLOY_PROGRESS_CI_RENDER_INTERVAL"):
        return _parse_seconds("DEPLOY_PROGRESS_CI_RENDER_INTERVAL", env)
    value = _get_section("render").get("ci-interval", CI_RENDER_INTERVAL)
    return _parse_seconds("render.ci-interval", value)


def get_render_interval() -> float:
    """Seconds between two frames of the live display.

    Priority: DEPLOY_PROGRESS_RENDER_INTERVAL → CI interval when under CI →
    [render].interval → platform default (0.1s, 0.5s on Windows).
    """
    if env := os.getenv("DEPLOY_PROGRESS_RENDER_INTERVAL"):
        return _parse_seconds("DEPLOY_PROGRESS_RENDER_INTERVAL", env)
    if is_ci():
        return get_ci_render_interval()
    if (value := _get_section("render").get("interval")) is not None:
        return _parse_seconds("render.interval", value)
    if sys.platform == "win32":
        return WINDOWS_RENDER_INTERVAL
    return DEFAULT_RENDER_INTERVAL


def get_max_failure_events() -> int:
    """Number of service failure events kept by a rolling update display.

    Priority: DEPLOY_PROGRESS_MAX_FAILURE_EVENTS → [render].max-failure-events → 5.
    """
    value = os.getenv("DEPLOY_PROGRESS_MAX_FAILURE_EVENTS") or _get_section(
        "render"
    ).get("max-failure-events", DEFAULT_MAX_FAILURE_EVENTS)
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"max failure events must be an integer, got {value!r}") from exc
    if count <= 0:
        raise ValueError(f"max failure events must be positive, got {value!r}")
    return count
