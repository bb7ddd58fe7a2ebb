"""Tests for closable async channels."""

from __future__ import annotations

import asyncio

import pytest

from deploy_progress.stream.channel import Channel, ChannelClosedError, closed_channel


class TestChannel:
    @pytest.mark.asyncio
    async def test_iterates_in_order_until_closed(self):
        channel: Channel[int] = Channel()
        for i in range(3):
            channel.send_nowait(i)
        channel.close()

        assert [item async for item in channel] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_receiver_waits_for_items(self):
        channel: Channel[str] = Channel()

        async def produce():
            await channel.send("a")
            await channel.send("b")
            channel.close()

        received, _ = await asyncio.gather(
            asyncio.wait_for(_collect(channel), timeout=1), produce()
        )
        assert received == ["a", "b"]

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        channel: Channel[int] = Channel()
        channel.close()
        channel.close()
        assert channel.closed
        assert [item async for item in channel] == []

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self):
        channel: Channel[int] = Channel()
        channel.close()
        with pytest.raises(ChannelClosedError):
            channel.send_nowait(1)

    @pytest.mark.asyncio
    async def test_receive_after_drain_keeps_raising(self):
        channel = closed_channel()
        with pytest.raises(StopAsyncIteration):
            await channel.receive()
        with pytest.raises(StopAsyncIteration):
            await channel.receive()


async def _collect(channel):
    return [item async for item in channel]
