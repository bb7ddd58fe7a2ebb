"""Tests for streamers and the fetch loop."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from deploy_progress.stream import StackEvent, StackStreamer, Streamer, compress, run_stream


def _event(logical_id: str, status: str, physical_id: str = "") -> StackEvent:
    return StackEvent(
        logical_resource_id=logical_id,
        resource_status=status,
        physical_resource_id=physical_id or logical_id,
    )


async def _collect(channel):
    return [item async for item in channel]


class TestStreamer:
    @pytest.mark.asyncio
    async def test_publishes_to_every_subscriber(self):
        streamer: Streamer[int] = Streamer()
        first, second = streamer.subscribe(), streamer.subscribe()

        streamer.publish([1, 2])
        streamer.close()

        assert await _collect(first) == [1, 2]
        assert await _collect(second) == [1, 2]

    @pytest.mark.asyncio
    async def test_late_subscriber_gets_closed_channel(self):
        streamer: Streamer[int] = Streamer()
        streamer.close()

        channel = streamer.subscribe()

        assert channel.closed
        assert await _collect(channel) == []

    @pytest.mark.asyncio
    async def test_publish_after_close_is_dropped(self):
        streamer: Streamer[int] = Streamer()
        channel = streamer.subscribe()
        streamer.close()
        streamer.publish([1])
        assert await _collect(channel) == []

    @pytest.mark.asyncio
    async def test_stack_streamer_compresses_batches(self):
        streamer = StackStreamer("demo")
        channel = streamer.subscribe()

        streamer.publish(
            [
                _event("Cluster", "CREATE_IN_PROGRESS"),
                _event("Role", "CREATE_IN_PROGRESS"),
                _event("Cluster", "CREATE_COMPLETE"),
            ]
        )
        streamer.close()

        statuses = [(e.logical_resource_id, e.resource_status) for e in await _collect(channel)]
        assert statuses == [("Role", "CREATE_IN_PROGRESS"), ("Cluster", "CREATE_COMPLETE")]


class TestCompress:
    def test_keeps_last_event_per_physical_id(self):
        batch = [
            _event("A", "CREATE_IN_PROGRESS"),
            _event("A", "CREATE_COMPLETE"),
            _event("B", "CREATE_IN_PROGRESS"),
        ]
        assert compress(batch) == batch[1:]

    def test_empty_batch(self):
        assert compress([]) == []


class TestRunStream:
    @pytest.mark.asyncio
    async def test_fetches_until_done_then_closes(self):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=[(0.0, False), (0.0, False), (0.0, True)])

        await run_stream(fetcher)

        assert fetcher.fetch.await_count == 3
        assert fetcher.notify.call_count == 3
        fetcher.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_closes_fetcher_on_error(self):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=RuntimeError("throttled"))

        with pytest.raises(RuntimeError, match="throttled"):
            await run_stream(fetcher)

        fetcher.notify.assert_not_called()
        fetcher.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_closes_fetcher_on_cancellation(self):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=(60.0, False))

        task = asyncio.create_task(run_stream(fetcher))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        fetcher.close.assert_called_once()
