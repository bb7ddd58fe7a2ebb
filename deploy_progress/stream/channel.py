"""Closable async channels connecting streamers to listening components.

A ``Channel`` is an unbounded ``asyncio.Queue`` with an explicit end of
stream.  Producers ``send`` items and finally ``close()``; consumers iterate
with ``async for`` and the loop ends once the channel is closed and drained.

    channel: Channel[StackEvent] = Channel()
    channel.send_nowait(event)
    channel.close()

    async for event in channel:
        ...
"""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class ChannelClosedError(Exception):
    """Raised when sending on a channel that was already closed."""


class Channel(Generic[T]):
    """Unbounded FIFO channel that can be closed exactly once."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send_nowait(self, item: T) -> None:
        if self._closed:
            raise ChannelClosedError("send on closed channel")
        self._queue.put_nowait(item)

    async def send(self, item: T) -> None:
        self.send_nowait(item)
        # Yield so receivers get a chance to run between sends.
        await asyncio.sleep(0)

    def close(self) -> None:
        """Mark the end of the stream.  Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def receive(self) -> T:
        """Return the next item, or raise ``StopAsyncIteration`` once drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker in place for any other receiver.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    def __aiter__(self) -> Channel[T]:
        return self

    async def __anext__(self) -> T:
        return await self.receive()


def closed_channel() -> Channel:
    """Return a channel that is already closed."""
    channel: Channel = Channel()
    channel.close()
    return channel
