"""Event types delivered by streamers to progress components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class StackEvent:
    """A CloudFormation stack resource event."""

    logical_resource_id: str
    resource_status: str
    physical_resource_id: str = ""
    resource_type: str = ""
    resource_status_reason: str = ""
    timestamp: datetime | None = None


@dataclass(frozen=True)
class StackSetOpEvent:
    """Status update of a stack-set operation."""

    name: str
    operation_id: str
    status: str
    reason: str = ""


@dataclass(frozen=True)
class ECSDeployment:
    """One deployment of an ECS service as reported by DescribeServices."""

    status: str
    task_def_revision: str
    desired_count: int = 0
    running_count: int = 0
    failed_count: int = 0
    pending_count: int = 0
    rollout_state: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class AlarmStatus:
    """State of a CloudWatch alarm watching a deployment."""

    name: str
    status: str


@dataclass(frozen=True)
class StoppedTask:
    """An ECS task that stopped during a deployment."""

    task_arn: str
    last_status: str = ""
    desired_status: str = ""
    stopped_reason: str = ""
    stopping_at: datetime | None = None


@dataclass(frozen=True)
class ECSService:
    """Snapshot of an ECS service during a rolling update."""

    deployments: list[ECSDeployment] = field(default_factory=list)
    latest_failure_events: list[str] = field(default_factory=list)
    alarms: list[AlarmStatus] = field(default_factory=list)
    stopped_tasks: list[StoppedTask] = field(default_factory=list)


class TaskArnError(ValueError):
    """Raised when a task ARN cannot be parsed."""


def task_id(task_arn: str) -> str:
    """Return the task ID from a task ARN.

    Both the long ``task/<cluster>/<id>`` and the legacy ``task/<id>``
    resource formats are accepted.
    """
    parts = task_arn.split(":", 5)
    if len(parts) != 6 or parts[0] != "arn":
        raise TaskArnError(f"parse ECS task ARN {task_arn!r}")
    resource = parts[5].split("/")
    if resource[0] != "task" or len(resource) < 2 or not resource[-1]:
        raise TaskArnError(f"parse ECS task ARN {task_arn!r}: resource is not a task")
    return resource[-1]


def short_task_id(task_id_: str) -> str:
    """First eight characters of a task ID, as shown in the ECS console."""
    return task_id_[:8]


def parse_service_arn(service_arn: str) -> tuple[str, str]:
    """Return ``(cluster, service)`` from an ECS service ARN.

    ``arn:aws:ecs:us-west-2:1111:service/my-cluster/my-svc`` gives
    ``("my-cluster", "my-svc")``.  Legacy ARNs without a cluster give an
    empty cluster name.
    """
    resource = service_arn.split(":", 5)[-1]
    parts = resource.split("/")
    if len(parts) >= 3:
        return parts[1], parts[2]
    return "", parts[-1]
