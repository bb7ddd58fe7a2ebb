"""Fan-out streamers that feed progress components.

A streamer hands every subscriber its own ``Channel`` and publishes events
to all of them in order.  Once closed, the channels of every subscriber are
closed and late subscribers receive an already closed channel, so a
component created after the stream finished still reaches its done state.

Polling streamers (fetching from a provider API) implement ``fetch()`` and
``notify()`` and are driven by ``run_stream``:

    streamer = StackStreamer("my-env")
    renderer = listening_stack_renderer(streamer, ...)
    async with asyncio.TaskGroup() as tg:
        tg.create_task(run_stream(poller))
        tg.create_task(render(out, renderer))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Generic, Protocol, TypeVar

from deploy_progress.stream.channel import Channel, closed_channel
from deploy_progress.stream.events import StackEvent

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Streamer(Generic[T]):
    """In-process fan-out of events to subscribed channels."""

    def __init__(self) -> None:
        self._subscribers: list[Channel[T]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self) -> Channel[T]:
        """Return a new channel that receives every event published from now on."""
        if self._closed:
            return closed_channel()
        channel: Channel[T] = Channel()
        self._subscribers.append(channel)
        return channel

    def publish(self, events: Iterable[T]) -> None:
        """Send ``events`` in order to every current subscriber."""
        if self._closed:
            logger.debug("Dropping events published after close")
            return
        subscribers = list(self._subscribers)
        for event in events:
            for channel in subscribers:
                channel.send_nowait(event)

    def close(self) -> None:
        """Close every subscribed channel; further subscriptions come back closed."""
        if self._closed:
            return
        self._closed = True
        for channel in self._subscribers:
            channel.close()
        logger.debug("Closed streamer with %d subscribers", len(self._subscribers))


class StackStreamer(Streamer[StackEvent]):
    """Streamer of CloudFormation stack events for a single stack."""

    def __init__(self, stack_name: str):
        super().__init__()
        self.stack_name = stack_name

    def publish(self, events: Iterable[StackEvent]) -> None:
        super().publish(compress(list(events)))


def compress(batch: list[StackEvent]) -> list[StackEvent]:
    """Keep only the last event of each physical resource in a batch.

    Order of the retained events is preserved.
    """
    seen: set[str] = set()
    kept: list[StackEvent] = []
    for event in reversed(batch):
        if event.physical_resource_id in seen:
            continue
        seen.add(event.physical_resource_id)
        kept.append(event)
    kept.reverse()
    return kept


class Fetcher(Protocol):
    """A polling source of events."""

    async def fetch(self) -> tuple[float, bool]:
        """Retrieve new events.

        Returns:
            Seconds to wait before the next fetch, and whether the source
            has no more events to produce.
        """
        ...

    def notify(self) -> None:
        """Publish the events retrieved by the last fetch."""
        ...

    def close(self) -> None: ...


async def run_stream(fetcher: Fetcher) -> None:
    """Fetch and publish events until the source is exhausted.

    The fetcher is always closed on exit, including on errors and
    cancellation, so every subscriber reaches its done state.
    """
    try:
        while True:
            delay, done = await fetcher.fetch()
            fetcher.notify()
            if done:
                return
            await asyncio.sleep(max(delay, 0.0))
    finally:
        fetcher.close()
