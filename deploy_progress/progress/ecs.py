"""Rolling update progress of an ECS service.

Unlike resource components, a rolling update keeps no status history: each
service snapshot replaces the deployments, alarms and stopped tasks shown,
while failure event messages accumulate in a bounded window where the
oldest message is evicted first.
"""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Protocol

from deploy_progress.progress.components import (
    NESTED_COMPONENT_PADDING,
    Renderer,
    RenderError,
    RenderOptions,
    SingleLineComponent,
    TableComponent,
    TreeComponent,
    Writer,
    render_components,
)
from deploy_progress.progress.status import (
    prettify_alarm_state,
    prettify_rollout_status,
    split_by_length,
)
from deploy_progress.stream.channel import Channel
from deploy_progress.stream.events import (
    AlarmStatus,
    ECSDeployment,
    ECSService,
    StoppedTask,
    short_task_id,
    task_id,
)
from deploy_progress.term import color

MAX_SERVICE_EVENTS_TO_DISPLAY = 5  # Failure event messages kept at most.
MAX_STOPPED_TASKS_TO_DISPLAY = 2

LOGS_COMMAND = "copilot svc logs --previous"
TASK_STOPPED_ARTICLE = "https://repost.aws/knowledge-center/ecs-task-stopped"

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class ECSServiceSubscriber(Protocol):
    def subscribe(self) -> Channel[ECSService]: ...


def _plural_word(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _stopping_time(task: StoppedTask) -> datetime:
    at = task.stopping_at
    if at is None:
        return _EPOCH
    return at if at.tzinfo else at.replace(tzinfo=timezone.utc)


def _bulleted(text: str, padding: int) -> list[Renderer]:
    """``- text`` split over as many lines as needed, continuation indented."""
    lines: list[Renderer] = []
    for i, chunk in enumerate(split_by_length(text)):
        prefix = "- " if i == 0 else "  "
        lines.append(SingleLineComponent(text=prefix + chunk, padding=padding))
    return lines


class RollingUpdateComponent:
    """Deployments, stopped tasks, failure events and alarms of a service.

    Args:
        stream: Channel of service snapshots.
        padding: Leading spaces before each section title.
        max_len_failure_msgs: Failure messages kept, newest last.
    """

    def __init__(
        self,
        stream: Channel[ECSService],
        *,
        padding: int = 0,
        max_len_failure_msgs: int = MAX_SERVICE_EVENTS_TO_DISPLAY,
    ):
        self.stream = stream
        self.padding = padding
        self.max_len_failure_msgs = max_len_failure_msgs
        self.deployments: list[ECSDeployment] = []
        self.failure_msgs: deque[str] = deque(maxlen=max_len_failure_msgs)
        self.alarms: list[AlarmStatus] = []
        self.stopped_tasks: list[StoppedTask] = []
        self._done = asyncio.Event()
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    def apply(self, service: ECSService) -> None:
        with self._lock:
            self.deployments = list(service.deployments)
            self.stopped_tasks = list(service.stopped_tasks[:MAX_STOPPED_TASKS_TO_DISPLAY])
            self.failure_msgs.extend(service.latest_failure_events)
            self.alarms = list(service.alarms)

    async def listen(self) -> None:
        async for service in self.stream:
            self.apply(service)
        self._done.set()

    def render(self, out: Writer) -> int:
        with self._lock:
            deployments = list(self.deployments)
            stopped_tasks = list(self.stopped_tasks)
            failure_msgs = list(self.failure_msgs)
            alarms = list(self.alarms)

        buf = io.StringIO()
        num_lines = self._render_deployments(buf, deployments)
        num_lines += self._render_stopped_tasks(buf, stopped_tasks)
        num_lines += self._render_failure_msgs(buf, failure_msgs)
        num_lines += self._render_alarms(buf, alarms)
        out.write(buf.getvalue())
        return num_lines

    async def done(self) -> None:
        await self._done.wait()

    def _render_deployments(self, out: Writer, deployments: list[ECSDeployment]) -> int:
        header = ["", "Revision", "Rollout", "Desired", "Running", "Failed", "Pending"]
        rows = [
            [
                d.status,
                d.task_def_revision,
                prettify_rollout_status(d.rollout_state),
                str(d.desired_count),
                str(d.running_count),
                str(d.failed_count),
                str(d.pending_count),
            ]
            for d in deployments
        ]
        table = TableComponent(color.faint("Deployments"), header, rows, padding=self.padding)
        try:
            return table.render(out)
        except ValueError as exc:
            raise RenderError(f"render deployments table: {exc}") from exc

    def _render_failure_msgs(self, out: Writer, failure_msgs: list[str]) -> int:
        if not failure_msgs:
            return 0

        title = "Latest failure event"
        if len(failure_msgs) > 1:
            title = f"Latest {len(failure_msgs)} failure events"
        components: list[Renderer] = [
            SingleLineComponent(),  # Blank line before the section.
            SingleLineComponent(
                text=color.dull_red("✘ ") + color.faint(title), padding=self.padding
            ),
        ]
        for msg in reversed(failure_msgs):
            components.extend(
                _bulleted(msg, self.padding + NESTED_COMPONENT_PADDING)
            )
        return render_components(out, components)

    def _render_alarms(self, out: Writer, alarms: list[AlarmStatus]) -> int:
        if not alarms:
            return 0
        rows = [[a.name, prettify_alarm_state(a.status)] for a in alarms]
        table = TableComponent(
            color.faint("Alarms"), ["Name", "State"], rows, padding=self.padding
        )
        return render_components(out, [SingleLineComponent(), table])

    def _render_stopped_tasks(self, out: Writer, stopped_tasks: list[StoppedTask]) -> int:
        if not stopped_tasks:
            return 0

        count = len(stopped_tasks)
        rows = []
        # Task IDs and latest stopping time grouped by stop reason.
        reasons: dict[str, tuple[list[str], datetime]] = {}
        for task in stopped_tasks:
            try:
                short_id = short_task_id(task_id(task.task_arn))
            except ValueError as exc:
                raise RenderError(f"render stopped tasks: {exc}") from exc
            rows.append([short_id, task.last_status, task.desired_status])
            ids, latest = reasons.get(task.stopped_reason, ([], _EPOCH))
            ids.append(short_id)
            reasons[task.stopped_reason] = (ids, max(latest, _stopping_time(task)))

        title = f"Latest {count} {_plural_word(count, 'task', 'tasks')} stopped reason"
        children: list[Renderer] = [
            SingleLineComponent(),  # Blank line before the stop reasons.
            SingleLineComponent(
                text=color.dull_red("✘ ") + color.faint(title), padding=self.padding
            ),
        ]
        ordered = sorted(reasons.items(), key=lambda item: item[1][1], reverse=True)
        for reason, (ids, _) in ordered:
            children.extend(
                _bulleted(
                    f"[{','.join(ids)}]: {reason}",
                    self.padding + NESTED_COMPONENT_PADDING,
                )
            )
        children.extend(
            [
                SingleLineComponent(),
                SingleLineComponent(
                    text=color.faint("Troubleshoot task stopped reason"),
                    padding=self.padding,
                ),
                SingleLineComponent(
                    text=f"1. You can run {color.highlight_code(LOGS_COMMAND)} "
                    "to see the logs of the last stopped task.",
                    padding=self.padding + NESTED_COMPONENT_PADDING,
                ),
                SingleLineComponent(
                    text="2. You can visit this article: "
                    f"{color.emphasize(TASK_STOPPED_ARTICLE)}.",
                    padding=self.padding + NESTED_COMPONENT_PADDING,
                ),
            ]
        )
        table = TableComponent(
            color.faint(
                f"Latest {count} stopped {_plural_word(count, 'task', 'tasks')}"
            ),
            ["TaskId", "CurrentStatus", "DesiredStatus"],
            rows,
            padding=self.padding,
        )
        return TreeComponent(table, children).render(out)


def listening_rolling_update_renderer(
    streamer: ECSServiceSubscriber,
    opts: RenderOptions | None = None,
    *,
    max_len_failure_msgs: int | None = None,
) -> RollingUpdateComponent:
    """Listen for service snapshots and render the rolling update.

    ``max_len_failure_msgs`` defaults to the configured maximum number of
    failure events (``settings.get_max_failure_events``).
    """
    from deploy_progress import settings

    opts = opts or RenderOptions()
    if max_len_failure_msgs is None:
        max_len_failure_msgs = settings.get_max_failure_events()
    comp = RollingUpdateComponent(
        streamer.subscribe(),
        padding=opts.padding,
        max_len_failure_msgs=max_len_failure_msgs,
    )
    comp._task = asyncio.get_running_loop().create_task(comp.listen())
    return comp
