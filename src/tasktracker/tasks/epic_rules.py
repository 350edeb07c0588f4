# src/tasktracker/tasks/epic_rules.py

"""
Epic derivation rule.

An epic's status and schedule are never stored as caller input; they are recomputed from
its subtasks after every change that touches one of them:

- status: NEW if there are no subtasks or all are NEW, DONE if all are DONE,
  IN_PROGRESS otherwise;
- start: earliest start among timed subtasks; end: latest end among timed subtasks;
  duration = end - start. No timed subtasks -> no schedule.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .task_models import Task, TaskKind, TaskStatus


@dataclass(frozen=True, slots=True)
class EpicSummary:
    status: TaskStatus
    start_time: datetime | None
    end_time: datetime | None

    @property
    def duration(self) -> timedelta | None:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time


def derive_status(statuses: Iterable[TaskStatus]) -> TaskStatus:
    seen = set(statuses)
    if not seen or seen == {TaskStatus.NEW}:
        return TaskStatus.NEW
    if seen == {TaskStatus.DONE}:
        return TaskStatus.DONE
    return TaskStatus.IN_PROGRESS


def summarize_subtasks(subtasks: Iterable[Task]) -> EpicSummary:
    statuses: list[TaskStatus] = []
    start: datetime | None = None
    end: datetime | None = None

    for sub in subtasks:
        statuses.append(sub.status)
        sub_end = sub.end_time
        if sub.start_time is None or sub_end is None:
            continue
        if start is None or sub.start_time < start:
            start = sub.start_time
        if end is None or sub_end > end:
            end = sub_end

    return EpicSummary(status=derive_status(statuses), start_time=start, end_time=end)


def apply_summary(
    epic: Task,
    summary: EpicSummary,
    *,
    subtask_ids: frozenset[int] | None = None,
    updated_at: datetime | None = None,
) -> Task:
    """Return a copy of `epic` carrying the derived fields (and optionally a new subtask set)."""
    if epic.kind != TaskKind.EPIC:
        raise ValueError(f"task {epic.id} is not an epic")
    changes: dict[str, object] = {
        "status": summary.status,
        "start_time": summary.start_time,
        "duration": summary.duration,
    }
    if subtask_ids is not None:
        changes["subtask_ids"] = frozenset(subtask_ids)
    if updated_at is not None:
        changes["updated_at"] = updated_at
    return replace(epic, **changes)
