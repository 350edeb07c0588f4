# src/tasktracker/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - for epics the status is derived from subtasks and never set by a caller.
    """

    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"

    @classmethod
    def parse(cls, raw: str) -> TaskStatus:
        try:
            return cls(raw.strip().upper())
        except ValueError:
            raise ValueError(f"unknown task status: {raw!r}") from None


class TaskKind(StrEnum):
    """Type discriminator of the tagged Task variant (also the persisted type column)."""

    TASK = "TASK"
    EPIC = "EPIC"
    SUBTASK = "SUBTASK"

    @classmethod
    def parse(cls, raw: str) -> TaskKind:
        try:
            return cls(raw.strip().upper())
        except ValueError:
            raise ValueError(f"unknown task type: {raw!r}") from None


@dataclass(frozen=True, slots=True)
class Task:
    id: int
    kind: TaskKind
    title: str
    description: str
    status: TaskStatus

    start_time: datetime | None = None
    duration: timedelta | None = None

    # SUBTASK only
    epic_id: int | None = None
    # EPIC only
    subtask_ids: frozenset[int] = field(default_factory=frozenset)

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def end_time(self) -> datetime | None:
        if self.start_time is None or self.duration is None:
            return None
        return self.start_time + self.duration

    @property
    def is_epic(self) -> bool:
        return self.kind == TaskKind.EPIC

    @property
    def is_subtask(self) -> bool:
        return self.kind == TaskKind.SUBTASK

    @property
    def is_schedulable(self) -> bool:
        """Only regular tasks and subtasks with a full window occupy the schedule."""
        return not self.is_epic and self.start_time is not None and self.duration is not None


# ---- inbound request value objects (validated by the caller) ----


@dataclass(frozen=True, slots=True)
class NewTask:
    title: str
    description: str
    status: TaskStatus = TaskStatus.NEW
    start_time: datetime | None = None
    duration: timedelta | None = None


@dataclass(frozen=True, slots=True)
class NewEpic:
    title: str
    description: str


@dataclass(frozen=True, slots=True)
class NewSubTask:
    epic_id: int | None
    title: str
    description: str
    status: TaskStatus = TaskStatus.NEW
    start_time: datetime | None = None
    duration: timedelta | None = None


@dataclass(frozen=True, slots=True)
class TaskUpdate:
    """Full replacement of a regular task's editable fields."""

    id: int
    title: str
    description: str
    status: TaskStatus
    start_time: datetime | None = None
    duration: timedelta | None = None


@dataclass(frozen=True, slots=True)
class EpicUpdate:
    """
    Only title/description are applied.

    status/start_time/duration are accepted so callers can send a generic payload,
    but they are ignored: epic status and span are always derived from subtasks.
    """

    id: int
    title: str
    description: str
    status: TaskStatus | None = None
    start_time: datetime | None = None
    duration: timedelta | None = None


@dataclass(frozen=True, slots=True)
class SubTaskUpdate:
    id: int
    title: str
    description: str
    status: TaskStatus
    start_time: datetime | None = None
    duration: timedelta | None = None
    # None keeps the current epic; another id moves the subtask.
    epic_id: int | None = None
