"""Replay recorded deployment events through streamers.

A recording is a YAML document describing what a deployment emitted and
when.  Every ``delay`` is the number of seconds to wait after the previous
step of the same source:

    stack:
      name: demo-env
      description: Update environment demo
      resources:
        Cluster: An ECS cluster to hold your services
      events:
        - {delay: 0.5, logical_id: demo-env, status: UPDATE_IN_PROGRESS}
        - {delay: 1.0, logical_id: Cluster, status: CREATE_COMPLETE}
    services:
      - logical_id: Service
        description: An ECS service to run and maintain your tasks
        arn: arn:aws:ecs:us-west-2:1111:service/demo/frontend
        snapshots:
          - delay: 2
            deployments:
              - {status: PRIMARY, task_def_revision: "3", desired_count: 2,
                 rollout_state: IN_PROGRESS}
            failure_events: []
    stack_set:
      title: Update stack set demo-infrastructure
      events:
        - {delay: 0.5, operation_id: "1", status: RUNNING}
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generic, TypeVar

import yaml

from deploy_progress.stream.events import (
    AlarmStatus,
    ECSDeployment,
    ECSService,
    StackEvent,
    StackSetOpEvent,
    StoppedTask,
    TaskArnError,
    task_id,
)
from deploy_progress.stream.streamer import Streamer

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RecordingError(ValueError):
    """Raised for a recording that cannot be replayed."""


@dataclass
class Step(Generic[T]):
    delay: float
    event: T


@dataclass
class StackRecording:
    name: str
    description: str
    resources: dict[str, str] = field(default_factory=dict)
    events: list[Step[StackEvent]] = field(default_factory=list)


@dataclass
class ServiceRecording:
    logical_id: str
    description: str
    arn: str
    snapshots: list[Step[ECSService]] = field(default_factory=list)


@dataclass
class StackSetRecording:
    title: str
    events: list[Step[StackSetOpEvent]] = field(default_factory=list)


@dataclass
class Recording:
    stack: StackRecording | None = None
    services: list[ServiceRecording] = field(default_factory=list)
    stack_set: StackSetRecording | None = None


# =============================================================================
# Loading
# =============================================================================


def _require(data: dict, key: str, where: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise RecordingError(f"{where}: missing required key {key!r}") from None


def _mapping(value: Any, where: str) -> dict:
    if not isinstance(value, dict):
        raise RecordingError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, where: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise RecordingError(f"{where}: expected a list, got {type(value).__name__}")
    return value


def _delay(item: dict, where: str) -> float:
    try:
        delay = float(item.get("delay", 0))
    except (TypeError, ValueError):
        raise RecordingError(f"{where}: delay must be a number") from None
    if delay < 0:
        raise RecordingError(f"{where}: delay must not be negative")
    return delay


def _stack_event(item: dict, where: str) -> StackEvent:
    return StackEvent(
        logical_resource_id=str(_require(item, "logical_id", where)),
        resource_status=str(_require(item, "status", where)),
        physical_resource_id=str(item.get("physical_id", "")),
        resource_type=str(item.get("type", "")),
        resource_status_reason=str(item.get("reason", "")),
    )


def _deployment(item: dict) -> ECSDeployment:
    fields = dict(item)
    fields["task_def_revision"] = str(fields.get("task_def_revision", ""))
    return ECSDeployment(**fields)


def _stopped_task(item: dict, where: str) -> StoppedTask:
    fields = dict(item)
    fields["task_arn"] = str(_require(item, "task_arn", where))
    task = StoppedTask(**fields)
    try:
        task_id(task.task_arn)
    except TaskArnError as exc:
        raise RecordingError(f"{where}: {exc}") from exc
    if task.stopping_at is not None and not isinstance(task.stopping_at, datetime):
        raise RecordingError(
            f"{where}: stopping_at must be a timestamp, got {task.stopping_at!r}"
        )
    return task


def _service_snapshot(item: dict, where: str) -> ECSService:
    try:
        return ECSService(
            deployments=[
                _deployment(_mapping(d, where))
                for d in _sequence(item.get("deployments"), where)
            ],
            latest_failure_events=[
                str(msg) for msg in _sequence(item.get("failure_events"), where)
            ],
            alarms=[
                AlarmStatus(**_mapping(a, where))
                for a in _sequence(item.get("alarms"), where)
            ],
            stopped_tasks=[
                _stopped_task(_mapping(t, where), f"{where}.stopped_tasks[{k}]")
                for k, t in enumerate(_sequence(item.get("stopped_tasks"), where))
            ],
        )
    except TypeError as exc:
        raise RecordingError(f"{where}: {exc}") from exc


def parse_recording(data: Any) -> Recording:
    """Build a ``Recording`` from the parsed YAML document."""
    data = _mapping(data, "recording")
    recording = Recording()

    if (stack := data.get("stack")) is not None:
        stack = _mapping(stack, "stack")
        name = str(_require(stack, "name", "stack"))
        resources = _mapping(stack.get("resources") or {}, "stack.resources")
        events = []
        for i, item in enumerate(_sequence(stack.get("events"), "stack.events")):
            where = f"stack.events[{i}]"
            item = _mapping(item, where)
            events.append(Step(_delay(item, where), _stack_event(item, where)))
        recording.stack = StackRecording(
            name=name,
            description=str(stack.get("description", name)),
            resources={str(k): str(v) for k, v in resources.items()},
            events=events,
        )

    for i, service in enumerate(_sequence(data.get("services"), "services")):
        where = f"services[{i}]"
        service = _mapping(service, where)
        snapshots = []
        for j, item in enumerate(_sequence(service.get("snapshots"), f"{where}.snapshots")):
            item_where = f"{where}.snapshots[{j}]"
            item = _mapping(item, item_where)
            snapshots.append(
                Step(_delay(item, item_where), _service_snapshot(item, item_where))
            )
        recording.services.append(
            ServiceRecording(
                logical_id=str(_require(service, "logical_id", where)),
                description=str(_require(service, "description", where)),
                arn=str(_require(service, "arn", where)),
                snapshots=snapshots,
            )
        )

    if (stack_set := data.get("stack_set")) is not None:
        stack_set = _mapping(stack_set, "stack_set")
        title = str(_require(stack_set, "title", "stack_set"))
        events = []
        for i, item in enumerate(_sequence(stack_set.get("events"), "stack_set.events")):
            where = f"stack_set.events[{i}]"
            item = _mapping(item, where)
            events.append(
                Step(
                    _delay(item, where),
                    StackSetOpEvent(
                        name=title,
                        operation_id=str(item.get("operation_id", "")),
                        status=str(_require(item, "status", where)),
                        reason=str(item.get("reason", "")),
                    ),
                )
            )
        recording.stack_set = StackSetRecording(title=title, events=events)

    if recording.stack is None and not recording.services and recording.stack_set is None:
        raise RecordingError("recording: nothing to replay")
    return recording


def load_recording(path: Path) -> Recording:
    """Read and parse a YAML recording file."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise RecordingError(f"{path}: invalid YAML: {exc}") from exc
    return parse_recording(data)


# =============================================================================
# Replaying
# =============================================================================


class ReplayFetcher(Generic[T]):
    """Fetcher publishing recorded events to a streamer one step at a time.

    Each ``fetch()`` waits for the delay of the next step.  Stack events get
    the wall-clock time of their publication as timestamp.
    """

    def __init__(self, streamer: Streamer[T], steps: list[Step[T]]):
        self.streamer = streamer
        self.steps = list(steps)
        self._next = 0
        self._pending: list[T] = []

    async def fetch(self) -> tuple[float, bool]:
        if self._next < len(self.steps):
            step = self.steps[self._next]
            self._next += 1
            await asyncio.sleep(step.delay)
            event = step.event
            if isinstance(event, StackEvent):
                event = dataclasses.replace(event, timestamp=datetime.now(timezone.utc))
            self._pending.append(event)
        return 0.0, self._next >= len(self.steps)

    def notify(self) -> None:
        events, self._pending = self._pending, []
        if events:
            self.streamer.publish(events)

    def close(self) -> None:
        logger.debug("Replayed %d of %d steps", self._next, len(self.steps))
        self.streamer.close()
