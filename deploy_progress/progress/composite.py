"""Composites that coordinate several dynamic renderers."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from deploy_progress.progress.cloudformation import (
    ResourceRendererOpts,
    StackComponent,
    StackSubscriber,
    listening_resource_renderer,
    listening_stack_renderer,
)
from deploy_progress.progress.components import (
    DynamicRenderer,
    RenderOptions,
    Writer,
)

logger = logging.getLogger(__name__)


class EnvControllerComponent:
    """An environment controller action and the environment stack it updates.

    The action is rendered on its own until the environment stack starts
    emitting events; from then on the whole stack is rendered instead.  If the
    action completes without the stack ever changing, ``cancel_stream`` is
    called so that the stack's event stream can be stopped.
    """

    def __init__(
        self,
        action: DynamicRenderer,
        stack: StackComponent,
        cancel_stream: Callable[[], None],
    ):
        self.action = action
        self.stack = stack
        self.cancel_stream = cancel_stream
        self._stack_started = False
        self._cancelled = False
        self._lock = threading.Lock()

    def render(self, out: Writer) -> int:
        with self._lock:
            if not self._stack_started and self.stack.has_events():
                self._stack_started = True
            stack_started = self._stack_started
        if stack_started:
            return self.stack.render(out)
        return self.action.render(out)

    async def done(self) -> None:
        await self.action.done()
        if self.stack.has_events():
            await self.stack.done()
            return
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        logger.debug("Environment stack did not change, cancelling its stream")
        self.cancel_stream()


def listening_env_controller_renderer(
    streamer: StackSubscriber,
    env_streamer: StackSubscriber,
    cancel_env_stream: Callable[[], None],
    action_logical_id: str,
    action_description: str,
    env_stack_name: str,
    env_description: str,
    env_resource_descriptions: dict[str, str],
    opts: RenderOptions | None = None,
) -> EnvControllerComponent:
    """Render an environment controller custom resource.

    ``streamer`` carries the events of the stack holding the action,
    ``env_streamer`` those of the environment stack.  The environment stack's
    own line is rendered with ``opts`` padding and its resources one level
    deeper.
    """
    opts = opts or RenderOptions()
    action = listening_resource_renderer(
        streamer,
        action_logical_id,
        action_description,
        ResourceRendererOpts(render_opts=opts),
    )
    stack = listening_stack_renderer(
        env_streamer,
        env_stack_name,
        env_description,
        env_resource_descriptions,
        opts,
    )
    return EnvControllerComponent(action, stack, cancel_env_stream)


@dataclass
class MultiRenderer:
    """Renders dynamic renderers one after the other.

    Done once every renderer is done, in whatever order they finish.
    """

    renderers: list[DynamicRenderer] = field(default_factory=list)

    def render(self, out: Writer) -> int:
        buf = io.StringIO()
        num_lines = 0
        for renderer in self.renderers:
            num_lines += renderer.render(buf)
        out.write(buf.getvalue())
        return num_lines

    async def done(self) -> None:
        await asyncio.gather(*(renderer.done() for renderer in self.renderers))


def multi_renderer(*renderers: DynamicRenderer) -> MultiRenderer:
    return MultiRenderer(list(renderers))
