"""Replay command - render a recorded deployment live in the terminal."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import click

from deploy_progress.progress import (
    DynamicRenderer,
    RenderError,
    RenderOptions,
    listening_ecs_service_resource_renderer,
    listening_rolling_update_renderer,
    listening_stack_renderer,
    listening_stack_set_renderer,
    multi_renderer,
    nested_render_options,
    render,
)
from deploy_progress.stream import StackStreamer, Streamer, run_stream
from deploy_progress.stream.events import parse_service_arn
from deploy_progress.stream.replay import (
    Recording,
    RecordingError,
    ReplayFetcher,
    load_recording,
)
from deploy_progress.term import TabbedFileWriter

logger = logging.getLogger(__name__)


async def replay_recording(
    recording: Recording, out: Any, *, interval: float | None = None
) -> int:
    """Stream ``recording`` and render it to ``out`` until every source ends.

    Service snapshots are only shown once the stack reports the service
    being created or updated with its ARN; snapshots replayed before that
    are not displayed.

    Returns:
        Number of lines of the final frame.
    """
    renderers: list[DynamicRenderer] = []
    fetchers: list[ReplayFetcher] = []

    stack_streamer: StackStreamer | None = None
    if recording.stack is not None or recording.services:
        stack_name = recording.stack.name if recording.stack else "stack"
        stack_streamer = StackStreamer(stack_name)
        events = recording.stack.events if recording.stack else []
        fetchers.append(ReplayFetcher(stack_streamer, events))

    service_opts = RenderOptions()
    if recording.stack is not None:
        renderers.append(
            listening_stack_renderer(
                stack_streamer,
                recording.stack.name,
                recording.stack.description,
                recording.stack.resources,
            )
        )
        service_opts = nested_render_options(service_opts)

    service_streamers: dict[str, Streamer] = {}
    for service in recording.services:
        service_streamers[service.arn] = Streamer()
        fetchers.append(
            ReplayFetcher(service_streamers[service.arn], service.snapshots)
        )

    def new_deployment_renderer(
        service_arn: str, started_at: datetime | None
    ) -> DynamicRenderer:
        streamer = service_streamers.get(service_arn)
        if streamer is None:
            logger.warning("No recorded snapshots for service %s", service_arn)
            streamer = Streamer()
            streamer.close()
        cluster, service_name = parse_service_arn(service_arn)
        logger.info(
            "Deployment of service %s in cluster %s started at %s",
            service_name,
            cluster or "default",
            started_at,
        )
        return listening_rolling_update_renderer(
            streamer, nested_render_options(service_opts)
        )

    for service in recording.services:
        renderers.append(
            listening_ecs_service_resource_renderer(
                stack_streamer,
                new_deployment_renderer,
                service.logical_id,
                service.description,
                service_opts,
            )
        )

    if recording.stack_set is not None:
        stack_set_streamer: Streamer = Streamer()
        fetchers.append(ReplayFetcher(stack_set_streamer, recording.stack_set.events))
        renderers.append(
            listening_stack_set_renderer(stack_set_streamer, recording.stack_set.title)
        )

    logger.info(
        "Replaying %d sources into %d renderers", len(fetchers), len(renderers)
    )
    async with asyncio.TaskGroup() as tg:
        for fetcher in fetchers:
            tg.create_task(run_stream(fetcher))
        rendering = tg.create_task(
            render(out, multi_renderer(*renderers), interval=interval)
        )
    return rendering.result()


@click.command()
@click.argument(
    "recording", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between redraws (default: from settings).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages")
def replay(recording: Path, interval: float | None, verbose: bool) -> None:
    """Replay a recorded deployment with live progress.

    RECORDING is a YAML file of stack, service and stack-set events.

    Examples:
        deploy-progress replay demo.yaml
        deploy-progress replay demo.yaml --interval 0.5
    """
    from deploy_progress.cli.logging import configure_cli_logging

    log_file = configure_cli_logging("replay", verbose=verbose)
    logger.info("Replaying %s (log: %s)", recording, log_file)

    try:
        loaded = load_recording(recording)
    except RecordingError as exc:
        raise click.ClickException(str(exc)) from exc

    out = TabbedFileWriter(sys.stderr)
    try:
        asyncio.run(replay_recording(loaded, out, interval=interval))
    except ExceptionGroup as group:
        failed = group.subgroup(RenderError)
        if failed is None:
            raise
        logger.error("Replay of %s failed: %s", recording, failed.exceptions)
        raise click.ClickException(str(failed.exceptions[0])) from group
