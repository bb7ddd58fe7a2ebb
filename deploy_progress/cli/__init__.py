"""CLI interface for deploy-progress."""

import logging

import click
from dotenv import load_dotenv

from deploy_progress import __version__

# Load environment variables from .env file
load_dotenv(override=True)

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    help="Show the deploy-progress version and exit.",
)
@click.pass_context
def main(ctx: click.Context, version: bool) -> None:
    """deploy-progress - live terminal progress for infrastructure deployments.

    \b
      deploy-progress replay <recording.yaml>   Replay recorded deployment events
    """
    if version:
        click.echo(__version__)
        ctx.exit()

    # If no subcommand, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def register_commands() -> None:
    """Register all commands with the main CLI."""
    from deploy_progress.cli.replay import replay

    main.add_command(replay)


# Register commands at import time
register_commands()

__all__ = ["main"]
