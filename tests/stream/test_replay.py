"""Tests for recordings and the replay fetcher."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from deploy_progress.stream import StackStreamer, Streamer, run_stream
from deploy_progress.stream.replay import (
    RecordingError,
    ReplayFetcher,
    Step,
    load_recording,
    parse_recording,
)

RECORDING = """
stack:
  name: demo-env
  description: Update environment demo
  resources:
    Cluster: An ECS cluster to hold your services
  events:
    - {delay: 0, logical_id: demo-env, status: UPDATE_IN_PROGRESS}
    - {delay: 0, logical_id: Cluster, status: CREATE_FAILED, reason: denied}
services:
  - logical_id: Service
    description: An ECS service
    arn: arn:aws:ecs:us-west-2:1111:service/demo/frontend
    snapshots:
      - delay: 0
        deployments:
          - {status: PRIMARY, task_def_revision: 3, desired_count: 2, rollout_state: IN_PROGRESS}
        failure_events: [unhealthy]
        alarms:
          - {name: cpu, status: OK}
stack_set:
  title: Update stack set demo-infrastructure
  events:
    - {delay: 0, operation_id: "1", status: RUNNING}
"""


class TestLoadRecording:
    def test_loads_every_source(self, tmp_path):
        path = tmp_path / "demo.yaml"
        path.write_text(RECORDING)

        recording = load_recording(path)

        assert recording.stack.name == "demo-env"
        assert recording.stack.resources == {"Cluster": "An ECS cluster to hold your services"}
        assert [s.event.resource_status for s in recording.stack.events] == [
            "UPDATE_IN_PROGRESS",
            "CREATE_FAILED",
        ]
        assert recording.stack.events[1].event.resource_status_reason == "denied"

        (service,) = recording.services
        snapshot = service.snapshots[0].event
        assert snapshot.deployments[0].task_def_revision == "3"
        assert snapshot.latest_failure_events == ["unhealthy"]
        assert snapshot.alarms[0].name == "cpu"

        assert recording.stack_set.events[0].event.status == "RUNNING"
        assert recording.stack_set.events[0].event.name == "Update stack set demo-infrastructure"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("stack: [unclosed")
        with pytest.raises(RecordingError, match="invalid YAML"):
            load_recording(path)

    def test_missing_key(self):
        with pytest.raises(RecordingError, match=r"stack.events\[0\]: missing required key 'status'"):
            parse_recording({"stack": {"name": "s", "events": [{"logical_id": "s"}]}})

    def test_negative_delay(self):
        with pytest.raises(RecordingError, match="delay must not be negative"):
            parse_recording(
                {"stack_set": {"title": "t", "events": [{"delay": -1, "status": "RUNNING"}]}}
            )

    def test_unknown_deployment_field(self):
        data = {
            "services": [
                {
                    "logical_id": "Service",
                    "description": "svc",
                    "arn": "arn",
                    "snapshots": [{"deployments": [{"status": "PRIMARY", "color": "blue"}]}],
                }
            ]
        }
        with pytest.raises(RecordingError, match=r"services\[0\].snapshots\[0\]"):
            parse_recording(data)

    @staticmethod
    def _with_stopped_task(task: dict) -> dict:
        return {
            "services": [
                {
                    "logical_id": "Service",
                    "description": "svc",
                    "arn": "arn",
                    "snapshots": [{"stopped_tasks": [task]}],
                }
            ]
        }

    def test_stopped_task(self):
        stopped_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        recording = parse_recording(
            self._with_stopped_task(
                {
                    "task_arn": "arn:aws:ecs:us-west-2:1111:task/demo/4082490ee6c245e09d2145010aa1ba8d",
                    "stopped_reason": "Essential container exited",
                    "stopping_at": stopped_at,
                }
            )
        )

        (task,) = recording.services[0].snapshots[0].event.stopped_tasks
        assert task.stopped_reason == "Essential container exited"
        assert task.stopping_at == stopped_at

    def test_stopped_task_with_invalid_arn(self):
        with pytest.raises(
            RecordingError,
            match=r"services\[0\].snapshots\[0\].stopped_tasks\[0\]: parse ECS task ARN 'not-an-arn'",
        ):
            parse_recording(self._with_stopped_task({"task_arn": "not-an-arn"}))

    def test_stopped_task_without_arn(self):
        with pytest.raises(RecordingError, match="missing required key 'task_arn'"):
            parse_recording(self._with_stopped_task({"stopped_reason": "exited"}))

    def test_stopped_task_with_text_stopping_time(self):
        task = {
            "task_arn": "arn:aws:ecs:us-west-2:1111:task/demo/4082490ee6c2",
            "stopping_at": "yesterday",
        }
        with pytest.raises(RecordingError, match="stopping_at must be a timestamp"):
            parse_recording(self._with_stopped_task(task))

    def test_empty_recording(self):
        with pytest.raises(RecordingError, match="nothing to replay"):
            parse_recording({})

    def test_not_a_mapping(self):
        with pytest.raises(RecordingError, match="expected a mapping"):
            parse_recording(["stack"])


class TestReplayFetcher:
    @pytest.mark.asyncio
    async def test_publishes_steps_then_closes(self):
        streamer: Streamer[str] = Streamer()
        channel = streamer.subscribe()
        fetcher = ReplayFetcher(streamer, [Step(0, "a"), Step(0.01, "b")])

        await run_stream(fetcher)

        assert [item async for item in channel] == ["a", "b"]
        assert streamer.closed

    @pytest.mark.asyncio
    async def test_stack_events_get_timestamps(self, tmp_path):
        recording = parse_recording(
            {"stack": {"name": "s", "events": [{"logical_id": "s", "status": "CREATE_COMPLETE"}]}}
        )
        streamer = StackStreamer("s")
        channel = streamer.subscribe()

        await run_stream(ReplayFetcher(streamer, recording.stack.events))

        (event,) = [item async for item in channel]
        assert event.timestamp is not None

    @pytest.mark.asyncio
    async def test_no_steps(self):
        streamer: Streamer[str] = Streamer()
        channel = streamer.subscribe()

        await run_stream(ReplayFetcher(streamer, []))

        assert [item async for item in channel] == []
