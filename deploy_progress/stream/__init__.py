"""Event streams consumed by progress components."""

from deploy_progress.stream.channel import Channel, ChannelClosedError, closed_channel
from deploy_progress.stream.events import (
    AlarmStatus,
    ECSDeployment,
    ECSService,
    StackEvent,
    StackSetOpEvent,
    StoppedTask,
)
from deploy_progress.stream.streamer import StackStreamer, Streamer, compress, run_stream

__all__ = [
    "AlarmStatus",
    "Channel",
    "ChannelClosedError",
    "ECSDeployment",
    "ECSService",
    "StackEvent",
    "StackSetOpEvent",
    "StackStreamer",
    "StoppedTask",
    "Streamer",
    "closed_channel",
    "compress",
    "run_stream",
]
