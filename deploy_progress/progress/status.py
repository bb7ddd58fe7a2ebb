"""Status history model shared by the listening components.

Every tracked entity keeps an append-only list of ``StatusEntry`` items.
Raw provider statuses are wrapped in a status type from one of two
vocabularies, CloudFormation resource statuses (``StackStatus``) and
stack-set operation statuses (``OpStatus``), and both classify into the
same ``Result`` kinds so prettifying and timing work the same way for any
component.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from deploy_progress.progress.stopwatch import StopWatch
from deploy_progress.term import color

MAX_CELL_LENGTH = 70  # Maximum number of characters per table cell.


class Result(Enum):
    """Classification of a raw status."""

    NOT_STARTED = "not started"
    IN_PROGRESS = "in progress"
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class Status(Protocol):
    """Capabilities every status value provides."""

    @property
    def result(self) -> Result: ...

    def in_progress(self) -> bool: ...

    def is_success(self) -> bool: ...

    def is_failure(self) -> bool: ...


class _ClassifiedStatus:
    """Mixin implementing the capability set on top of ``result``."""

    result: Result

    def in_progress(self) -> bool:
        return self.result is Result.IN_PROGRESS

    def is_success(self) -> bool:
        return self.result is Result.SUCCESS

    def is_failure(self) -> bool:
        return self.result is Result.FAILURE


_ROLLBACK_COMPLETE = frozenset(
    {
        "ROLLBACK_COMPLETE",
        "UPDATE_ROLLBACK_COMPLETE",
        "IMPORT_ROLLBACK_COMPLETE",
    }
)


def classify(raw: str) -> Result:
    """Classify a raw CloudFormation status by its suffix.

    Statuses that are not recognized are treated as in progress.
    """
    if raw.endswith("_IN_PROGRESS"):
        return Result.IN_PROGRESS
    if raw.endswith("_FAILED") or raw in _ROLLBACK_COMPLETE:
        return Result.FAILURE
    if raw.endswith("_COMPLETE") or raw.endswith("SUCCEEDED"):
        return Result.SUCCESS
    if raw.endswith("_SKIPPED"):
        return Result.SKIPPED
    return Result.IN_PROGRESS


@dataclass(frozen=True)
class NotStartedStatus(_ClassifiedStatus):
    """Seed status of every history before the first event arrives."""

    @property
    def result(self) -> Result:  # type: ignore[override]
        return Result.NOT_STARTED

    def __str__(self) -> str:
        return "not started"


@dataclass(frozen=True)
class StackStatus(_ClassifiedStatus):
    """A CloudFormation stack or resource status such as ``CREATE_COMPLETE``."""

    value: str

    @property
    def result(self) -> Result:  # type: ignore[override]
        return classify(self.value)

    def upsert_in_progress(self) -> bool:
        """True while the resource is being created or updated."""
        return self.value in ("CREATE_IN_PROGRESS", "UPDATE_IN_PROGRESS")

    def __str__(self) -> str:
        return self.value


_OP_RESULTS = {
    "QUEUED": Result.IN_PROGRESS,
    "RUNNING": Result.IN_PROGRESS,
    "STOPPING": Result.IN_PROGRESS,
    "SUCCEEDED": Result.SUCCESS,
    "FAILED": Result.FAILURE,
    "STOPPED": Result.FAILURE,
}


@dataclass(frozen=True)
class OpStatus(_ClassifiedStatus):
    """A stack-set operation status such as ``RUNNING`` or ``SUCCEEDED``."""

    value: str

    @property
    def result(self) -> Result:  # type: ignore[override]
        return _OP_RESULTS.get(self.value, Result.IN_PROGRESS)

    def is_completed(self) -> bool:
        return self.result in (Result.SUCCESS, Result.FAILURE)

    def __str__(self) -> str:
        return self.value


NOT_STARTED = NotStartedStatus()


@dataclass(frozen=True)
class StatusEntry:
    """One status observed for an entity, with its optional failure reason."""

    value: Status
    reason: str = ""


NOT_STARTED_ENTRY = StatusEntry(NOT_STARTED)


# =============================================================================
# History updates
# =============================================================================


def update_timer(statuses: list[StatusEntry], stopwatch: StopWatch) -> None:
    """Start or stop ``stopwatch`` after the latest entry was appended.

    Histories always hold at least the seed entry plus the new one.
    """
    current, latest = statuses[-2].value, statuses[-1].value
    if latest.in_progress():
        # Repeated in-progress events belong to the same operation.
        if current.in_progress():
            return
        stopwatch.reset()
        stopwatch.start()
        return
    if not stopwatch.started:
        # Went straight to a finished state: time it as zero.
        stopwatch.start()
    stopwatch.stop()


# =============================================================================
# Prettifying
# =============================================================================


def prettify_latest_status(statuses: list[StatusEntry]) -> str:
    """Bracketed, lower-cased form of the latest status, coloured by history.

    Red if any entry ever failed, green if the latest succeeded, faint
    otherwise.
    """
    latest = statuses[-1].value
    pretty = "[{}]".format(str(latest).lower().replace("_", " "))
    if any(entry.value.is_failure() for entry in statuses):
        return color.red(pretty)
    if latest.is_success():
        return color.green(pretty)
    return color.faint(pretty)


def prettify_elapsed_time(stopwatch: StopWatch) -> str:
    elapsed, started = stopwatch.elapsed()
    if not started:
        return ""
    return color.faint(f"[{elapsed:.1f}s]")


def failure_reasons(statuses: list[StatusEntry]) -> list[str]:
    """Reasons of every failed entry, in arrival order."""
    return [
        entry.reason
        for entry in statuses
        if entry.value.is_failure() and entry.reason
    ]


def color_failure_reason(text: str) -> str:
    return color.dull_red(text)


def prettify_rollout_status(rollout: str) -> str:
    pretty = "[{}]".format(rollout.lower().replace("_", " "))
    if rollout == "COMPLETED":
        return color.green(pretty)
    if rollout == "FAILED":
        return color.red(pretty)
    return color.faint(pretty)


def prettify_alarm_state(state: str) -> str:
    pretty = f"[{state}]"
    if state == "OK":
        return color.green(pretty)
    if state == "ALARM":
        return color.red(pretty)
    return color.faint(pretty)


def split_by_length(text: str, max_length: int = MAX_CELL_LENGTH) -> list[str]:
    """Split ``text`` into chunks of at most ``max_length`` characters.

    Splits on character count, not on word boundaries.
    """
    return [text[i : i + max_length] for i in range(0, len(text), max_length)]
