"""Components listening to CloudFormation stack and stack-set events.

Each listening component owns a channel of events and consumes it in a
background task started at creation, appending to its status history under
its own lock.  ``render`` takes the same lock only long enough to format a
snapshot, so rendering and event consumption never wait on each other.
The component's done event is set once its channel has been closed and
drained.

Factories (``listening_*_renderer``) subscribe to a streamer and start the
listening task, so they must be called from within a running event loop.
"""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from deploy_progress.progress.components import (
    NESTED_COMPONENT_PADDING,
    DynamicRenderer,
    DynamicTreeComponent,
    NoopComponent,
    Renderer,
    RenderOptions,
    SingleLineComponent,
    SuffixWriter,
    Writer,
    nested_render_options,
    render_components,
)
from deploy_progress.progress.status import (
    NOT_STARTED_ENTRY,
    OpStatus,
    StackStatus,
    StatusEntry,
    color_failure_reason,
    failure_reasons,
    prettify_elapsed_time,
    prettify_latest_status,
    split_by_length,
    update_timer,
)
from deploy_progress.progress.stopwatch import StopWatch
from deploy_progress.stream.channel import Channel
from deploy_progress.stream.events import StackEvent, StackSetOpEvent

logger = logging.getLogger(__name__)


class StackSubscriber(Protocol):
    def subscribe(self) -> Channel[StackEvent]: ...


class StackSetSubscriber(Protocol):
    def subscribe(self) -> Channel[StackSetOpEvent]: ...


@dataclass
class ResourceRendererOpts:
    """Optional configuration for a listening resource renderer."""

    # Starting event for the resource instead of "[not started]".
    start_event: StackEvent | None = None
    render_opts: RenderOptions = field(default_factory=RenderOptions)


def _start(coro) -> asyncio.Task:
    return asyncio.get_running_loop().create_task(coro)


def stack_resource_components(
    description: str,
    separator: str,
    statuses: list[StatusEntry],
    stopwatch: StopWatch,
    padding: int,
) -> list[Renderer]:
    """Status line of a resource followed by its wrapped failure reasons."""
    columns = [
        f"- {description}",
        prettify_latest_status(statuses),
        prettify_elapsed_time(stopwatch),
    ]
    components: list[Renderer] = [
        SingleLineComponent(text=separator.join(columns), padding=padding)
    ]
    for reason in failure_reasons(statuses):
        for text in split_by_length(reason):
            components.append(
                SingleLineComponent(
                    text=separator.join([color_failure_reason(text), "", ""]),
                    padding=padding + NESTED_COMPONENT_PADDING,
                )
            )
    return components


# =============================================================================
# Single resource
# =============================================================================


class ResourceComponent:
    """A single CloudFormation resource, shown as one status line.

    Args:
        stream: Channel of stack events; only events for ``logical_id`` count.
        logical_id: Logical ID of the resource in the template.
        description: Human friendly explanation of the resource.
        padding: Leading spaces before the resource line.
        stopwatch: Timer for the current operation on the resource.
    """

    def __init__(
        self,
        stream: Channel[StackEvent],
        logical_id: str,
        description: str,
        *,
        padding: int = 0,
        stopwatch: StopWatch | None = None,
        separator: str = "\t",
    ):
        self.stream = stream
        self.logical_id = logical_id
        self.description = description
        self.padding = padding
        self.separator = separator
        self.statuses: list[StatusEntry] = [NOT_STARTED_ENTRY]
        self.stopwatch = stopwatch or StopWatch()
        self._done = asyncio.Event()
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    def apply(self, event: StackEvent) -> None:
        """Record ``event`` in the history and update the timer."""
        with self._lock:
            self.statuses.append(
                StatusEntry(
                    StackStatus(event.resource_status), event.resource_status_reason
                )
            )
            update_timer(self.statuses, self.stopwatch)

    async def listen(self) -> None:
        async for event in self.stream:
            if event.logical_resource_id != self.logical_id:
                continue
            self.apply(event)
        self._done.set()

    def render(self, out: Writer) -> int:
        with self._lock:
            components = stack_resource_components(
                self.description,
                self.separator,
                self.statuses,
                self.stopwatch,
                self.padding,
            )
        return render_components(out, components)

    async def done(self) -> None:
        await self._done.wait()


def listening_resource_renderer(
    streamer: StackSubscriber,
    logical_id: str,
    description: str,
    opts: ResourceRendererOpts | None = None,
) -> ResourceComponent:
    """Listen for the stack events of one resource until the stream closes."""
    return _listening_resource(streamer.subscribe(), logical_id, description, opts)


def _listening_resource(
    stream: Channel[StackEvent],
    logical_id: str,
    description: str,
    opts: ResourceRendererOpts | None,
) -> ResourceComponent:
    opts = opts or ResourceRendererOpts()
    comp = ResourceComponent(
        stream, logical_id, description, padding=opts.render_opts.padding
    )
    if opts.start_event is not None:
        comp.apply(opts.start_event)
    comp._task = _start(comp.listen())
    return comp


# =============================================================================
# Whole stack
# =============================================================================


class StackComponent:
    """All the described resources of a stack, in order of first appearance.

    The stack itself is tracked as the first resource.  The first event of
    any other resource with a description adds a nested resource line, which
    from then on receives every event for that resource.

    Args:
        stream: Channel of every event of the stack.
        stack_name: Logical ID of the stack.
        description: Description of the stack's own line.
        resource_descriptions: Descriptions by logical ID; resources without
            one are not displayed.
    """

    def __init__(
        self,
        stream: Channel[StackEvent],
        stack_name: str,
        description: str,
        resource_descriptions: dict[str, str],
        *,
        render_opts: RenderOptions | None = None,
    ):
        self.stream = stream
        self.stack_name = stack_name
        self.resource_descriptions = resource_descriptions
        self.render_opts = render_opts or RenderOptions()
        self.resources: list[ResourceComponent] = []
        self._channels: dict[str, Channel[StackEvent]] = {}
        self._seen: set[str] = set()
        self._num_events = 0
        self._done = asyncio.Event()
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None
        self._add_resource(stack_name, description, self.render_opts, None)

    def _add_resource(
        self,
        logical_id: str,
        description: str,
        render_opts: RenderOptions,
        start_event: StackEvent | None,
    ) -> None:
        channel: Channel[StackEvent] = Channel()
        resource = _listening_resource(
            channel,
            logical_id,
            description,
            ResourceRendererOpts(start_event=start_event, render_opts=render_opts),
        )
        with self._lock:
            self._seen.add(logical_id)
            self._channels[logical_id] = channel
            self.resources.append(resource)

    async def listen(self) -> None:
        async for event in self.stream:
            logical_id = event.logical_resource_id
            with self._lock:
                self._num_events += 1
            if channel := self._channels.get(logical_id):
                channel.send_nowait(event)
                continue
            if logical_id in self._seen:
                continue
            self._seen.add(logical_id)
            description = self.resource_descriptions.get(logical_id)
            if description is None:
                continue
            logger.debug("Tracking new resource %s of %s", logical_id, self.stack_name)
            self._add_resource(
                logical_id,
                description,
                nested_render_options(self.render_opts),
                event,
            )

        for channel in self._channels.values():
            channel.close()
        await asyncio.gather(*(resource.done() for resource in self.resources))
        logger.debug("Stream of stack %s closed", self.stack_name)
        self._done.set()

    def has_events(self) -> bool:
        """True once any event was received for the stack."""
        with self._lock:
            return self._num_events > 0

    def render(self, out: Writer) -> int:
        with self._lock:
            resources = list(self.resources)
        return render_components(out, resources)

    async def done(self) -> None:
        await self._done.wait()


def listening_stack_renderer(
    streamer: StackSubscriber,
    stack_name: str,
    description: str,
    resource_descriptions: dict[str, str],
    opts: RenderOptions | None = None,
) -> StackComponent:
    """Listen for the resource events of a stack until the stack settles."""
    comp = StackComponent(
        streamer.subscribe(),
        stack_name,
        description,
        resource_descriptions,
        render_opts=opts,
    )
    comp._task = _start(comp.listen())
    return comp


def listening_change_set_renderer(
    streamer: StackSubscriber,
    stack_name: str,
    description: str,
    changes: list[Renderer],
    opts: RenderOptions | None = None,
) -> DynamicTreeComponent:
    """The stack's own line followed by renderers for its change set."""
    return DynamicTreeComponent(
        root=listening_resource_renderer(
            streamer,
            stack_name,
            description,
            ResourceRendererOpts(render_opts=opts or RenderOptions()),
        ),
        children=changes,
    )


# =============================================================================
# Stack-set operation
# =============================================================================


class StackSetComponent:
    """Status line of a stack-set operation."""

    def __init__(
        self,
        stream: Channel[StackSetOpEvent],
        title: str,
        *,
        padding: int = 0,
        stopwatch: StopWatch | None = None,
        separator: str = "\t",
    ):
        self.stream = stream
        self.title = title
        self.padding = padding
        self.separator = separator
        self.statuses: list[StatusEntry] = [NOT_STARTED_ENTRY]
        self.stopwatch = stopwatch or StopWatch()
        self._done = asyncio.Event()
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    async def listen(self) -> None:
        async for event in self.stream:
            with self._lock:
                self.statuses.append(StatusEntry(OpStatus(event.status), event.reason))
                update_timer(self.statuses, self.stopwatch)
        self._done.set()

    def render(self, out: Writer) -> int:
        with self._lock:
            components = stack_resource_components(
                self.title, self.separator, self.statuses, self.stopwatch, self.padding
            )
        return render_components(out, components)

    async def done(self) -> None:
        await self._done.wait()


def listening_stack_set_renderer(
    streamer: StackSetSubscriber, title: str, opts: RenderOptions | None = None
) -> StackSetComponent:
    """Listen for the status changes of a stack-set operation."""
    opts = opts or RenderOptions()
    comp = StackSetComponent(streamer.subscribe(), title, padding=opts.padding)
    comp._task = _start(comp.listen())
    return comp


# =============================================================================
# ECS service resource
# =============================================================================


DeploymentRendererFactory = Callable[[str, datetime | None], DynamicRenderer]


class ECSServiceResourceComponent:
    """An ECS service resource followed by its rolling deployment, if any.

    When the service goes into create or update in progress with a known
    physical ID, a deployment renderer is started for it and shown under the
    resource line.

    Args:
        stream: Channel of stack events.
        logical_id: Logical ID of the service.
        resource_renderer: Renderer of the service's resource line.
        new_deployment_renderer: Builds a deployment renderer from the
            service ARN and the time the deployment started.
    """

    def __init__(
        self,
        stream: Channel[StackEvent],
        logical_id: str,
        resource_renderer: DynamicRenderer,
        new_deployment_renderer: DeploymentRendererFactory,
    ):
        self.stream = stream
        self.logical_id = logical_id
        self.resource_renderer = resource_renderer
        self.new_deployment_renderer = new_deployment_renderer
        self.deployment_renderer: DynamicRenderer | None = None
        self._done = asyncio.Event()
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    async def listen(self) -> None:
        renderers: list[DynamicRenderer] = [self.resource_renderer]
        async for event in self.stream:
            if event.logical_resource_id != self.logical_id:
                continue
            if not StackStatus(event.resource_status).upsert_in_progress():
                continue
            if not event.physical_resource_id:
                # A new service first reports in progress without its ARN.
                continue
            logger.debug("Tracking deployment of %s", event.physical_resource_id)
            renderer = self.new_deployment_renderer(
                event.physical_resource_id, event.timestamp
            )
            with self._lock:
                self.deployment_renderer = renderer
            renderers.append(renderer)

        await asyncio.gather(*(r.done() for r in renderers))
        self._done.set()

    def render(self, out: Writer) -> int:
        with self._lock:
            deployment: Renderer = self.deployment_renderer or NoopComponent()
        buf = io.StringIO()
        num_lines = self.resource_renderer.render(buf)
        # Two empty columns so the deployment aligns with resource lines.
        num_lines += deployment.render(SuffixWriter(buf, "\t\t"))
        out.write(buf.getvalue())
        return num_lines

    async def done(self) -> None:
        await self._done.wait()


def listening_ecs_service_resource_renderer(
    streamer: StackSubscriber,
    new_deployment_renderer: DeploymentRendererFactory,
    logical_id: str,
    description: str,
    opts: RenderOptions | None = None,
) -> ECSServiceResourceComponent:
    """An ECS service resource line plus its rolling update progress.

    ``new_deployment_renderer`` is called with the service ARN and start
    time; it is expected to subscribe to a stream of the service's
    deployments, e.g. through ``listening_rolling_update_renderer``, with
    options from ``nested_render_options``.
    """
    opts = opts or RenderOptions()
    comp = ECSServiceResourceComponent(
        streamer.subscribe(),
        logical_id,
        listening_resource_renderer(
            streamer, logical_id, description, ResourceRendererOpts(render_opts=opts)
        ),
        new_deployment_renderer,
    )
    comp._task = _start(comp.listen())
    return comp
