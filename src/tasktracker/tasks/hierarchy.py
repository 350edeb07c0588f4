# src/tasktracker/tasks/hierarchy.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime

from ..core.errors import TaskNotFoundError, ValidationRejectedError
from .epic_rules import apply_summary, summarize_subtasks
from .task_models import Task, TaskKind

logger = logging.getLogger(__name__)

_KIND_NAMES = {
    TaskKind.TASK: "Task",
    TaskKind.EPIC: "Epic",
    TaskKind.SUBTASK: "Subtask",
}


class TaskHierarchy:
    """
    Canonical in-memory task collection plus the epic <-> subtask links.

    Tasks are frozen; every change stores a new object under the same id.
    Epic derived fields are refreshed through `refresh_epic`, which is the only
    place an epic's status/schedule is written.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[int, Task] = {}
        for task in tasks:
            self.put(task)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    # ---- lookups ----

    def get(self, task_id: int) -> Task | None:
        return self._tasks.get(task_id)

    def require(self, task_id: int, kind: TaskKind | None = None) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id, _KIND_NAMES[kind] if kind is not None else "Task")
        if kind is not None and task.kind != kind:
            raise ValidationRejectedError(
                f"Task with id {task_id} has type {task.kind.value} but {kind.value} was expected"
            )
        return task

    def all(self) -> tuple[Task, ...]:
        return tuple(self._tasks[k] for k in sorted(self._tasks))

    def by_kind(self, kind: TaskKind) -> tuple[Task, ...]:
        return tuple(t for t in self.all() if t.kind == kind)

    def subtasks_of(self, epic_id: int) -> tuple[Task, ...]:
        epic = self.require(epic_id, TaskKind.EPIC)
        return tuple(self._tasks[i] for i in sorted(epic.subtask_ids) if i in self._tasks)

    # ---- mutation ----

    def put(self, task: Task) -> None:
        self._tasks[task.id] = task

    def pop(self, task_id: int) -> Task | None:
        return self._tasks.pop(task_id, None)

    def clear(self) -> None:
        self._tasks.clear()

    def refresh_epic(
        self,
        epic_id: int,
        *,
        now: datetime | None = None,
        attach: int | None = None,
        detach: int | None = None,
    ) -> Task:
        """
        Recompute an epic's status/span from its subtasks, optionally attaching or
        detaching one subtask id first. Returns the stored epic.
        """
        epic = self.require(epic_id, TaskKind.EPIC)
        # ids of subtasks already removed from the collection are dropped here
        ids = {i for i in epic.subtask_ids if i in self._tasks}
        if attach is not None:
            ids.add(attach)
        if detach is not None:
            ids.discard(detach)

        subtasks = [self._tasks[i] for i in ids if i in self._tasks]
        updated = apply_summary(
            epic,
            summarize_subtasks(subtasks),
            subtask_ids=frozenset(ids),
            updated_at=now,
        )
        self._tasks[epic_id] = updated
        if updated.status != epic.status:
            logger.debug(
                "Epic %s status %s -> %s", epic_id, epic.status.value, updated.status.value
            )
        return updated

    def rename(self, task_id: int, title: str, description: str, now: datetime) -> Task:
        task = self.require(task_id)
        updated = replace(task, title=title, description=description, updated_at=now)
        self._tasks[task_id] = updated
        return updated

    # ---- snapshots ----

    def snapshot(self) -> dict[int, Task]:
        return dict(self._tasks)

    def restore(self, tasks: Mapping[int, Task]) -> None:
        self._tasks = dict(tasks)
