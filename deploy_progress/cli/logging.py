"""CLI logging configuration with file output.

Live progress owns the terminal while it renders, so CLI commands log to a
rotating file only, under ``~/.local/share/deploy-progress/logs/``::

    <command>.log   # e.g. replay.log

Usage from any CLI command::

    from deploy_progress.cli.logging import configure_cli_logging

    configure_cli_logging("replay", verbose=verbose)

Follow a running command with::

    tail -f ~/.local/share/deploy-progress/logs/replay.log
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Standard log directory follows XDG convention
LOG_DIR = Path.home() / ".local" / "share" / "deploy-progress" / "logs"


def get_log_dir() -> Path:
    """Return the CLI log directory, creating it if needed."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR


def get_log_file(command: str) -> Path:
    """Return the log file path for a given CLI command."""
    return get_log_dir() / f"{command}.log"


def configure_cli_logging(
    command: str,
    *,
    verbose: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 3,
) -> Path:
    """Configure file logging for a CLI command.

    Args:
        command: CLI command name (e.g., "replay")
        verbose: If True, log at DEBUG level, otherwise INFO
        max_bytes: Max size per log file before rotation
        backup_count: Number of rotated backups to keep

    Returns:
        Path to the log file
    """
    level = logging.DEBUG if verbose else logging.INFO
    log_file = get_log_file(command)

    package_logger = logging.getLogger("deploy_progress")

    # Remove existing file handlers to avoid duplicates on repeated calls
    for handler in package_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            package_logger.removeHandler(handler)
            handler.close()

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    package_logger.addHandler(file_handler)

    # NOTSET inherits WARNING from the root logger.
    if package_logger.level == logging.NOTSET or package_logger.level > level:
        package_logger.setLevel(level)

    return log_file
