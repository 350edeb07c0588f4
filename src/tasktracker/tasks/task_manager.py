# src/tasktracker/tasks/task_manager.py

"""
Task repository facade.

Composes the hierarchy, the schedule index, the view history and the codec/storage pair
behind one create/read/update/delete surface.

Every mutating call is one transaction under a single lock:
  snapshot -> validate ids -> overlap check -> mutate -> refresh epics -> index -> flush.
If any step raises (including a failed flush) the snapshot is restored, so memory and
the data file never diverge. Reads take the same lock and return immutable snapshots.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import cast

from ..core.errors import (
    OverlapError,
    PersistenceFormatError,
    PersistenceIOError,
    TaskTrackerError,
    ValidationRejectedError,
)
from ..core.ports import TaskCodec, TaskStorage
from .hierarchy import TaskHierarchy
from .history import ViewHistory
from .id_allocator import IdAllocator
from .schedule_index import ScheduleIndex
from .task_codec import DecodedState, TaskCsvCodec
from .task_models import (
    EpicUpdate,
    NewEpic,
    NewSubTask,
    NewTask,
    SubTaskUpdate,
    Task,
    TaskKind,
    TaskStatus,
    TaskUpdate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Snapshot:
    tasks: dict[int, Task]
    index: ScheduleIndex
    history: tuple[int, ...]
    next_id: int


def _window(task: Task) -> tuple[datetime, datetime] | None:
    if not task.is_schedulable:
        return None
    return cast(datetime, task.start_time), cast(datetime, task.end_time)


class TaskManager:
    def __init__(
        self,
        storage: TaskStorage,
        *,
        codec: TaskCodec | None = None,
        history_limit: int = 0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._storage = storage
        self._codec: TaskCodec = codec if codec is not None else TaskCsvCodec()
        self._clock = clock or datetime.now
        self._lock = threading.RLock()

        self._tasks = TaskHierarchy()
        self._index = ScheduleIndex()
        self._history = ViewHistory(limit=history_limit)
        self._ids = IdAllocator()

        self._load()
        logger.info(
            "TaskManager ready storage=%s total=%s history=%s",
            getattr(storage, "path", type(storage).__name__),
            len(self._tasks),
            len(self._history),
        )

    @property
    def storage(self) -> TaskStorage:
        return self._storage

    # ---- loading / flushing ----

    def _load(self) -> None:
        data = self._storage.read_bytes()
        if not data:
            logger.info("No stored tasks found; starting with an empty repository.")
            return
        self._apply_decoded(self._codec.deserialize(data))

    def _apply_decoded(self, decoded: DecodedState) -> None:
        """Build every structure aside and swap in only when all of it is consistent."""
        index = ScheduleIndex()
        ids = IdAllocator()
        for task in decoded.tasks:
            ids.observe(task.id)
            try:
                window = _window(task)
                if window is None:
                    continue
                conflict = index.find_conflict(*window)
            except (TypeError, OverflowError) as e:
                raise PersistenceFormatError(f"unusable schedule of task {task.id}: {e}") from e
            if conflict is not None:
                raise PersistenceFormatError(
                    f"stored schedule of task {task.id} overlaps task {conflict}"
                )
            index.insert(task.id, *window)

        self._tasks = TaskHierarchy(decoded.tasks)
        self._index = index
        self._history = ViewHistory(limit=self._history.limit, ids=decoded.history)
        self._ids = ids
        logger.info(
            "Loaded %d tasks (%d scheduled), history=%d",
            len(self._tasks),
            len(self._index),
            len(self._history),
        )

    def _flush(self) -> None:
        data = self._codec.serialize(self._tasks.all(), self._history.get_history())
        self._storage.write_bytes(data)

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            tasks=self._tasks.snapshot(),
            index=self._index.copy(),
            history=self._history.get_history(),
            next_id=self._ids.peek(),
        )

    def _rollback(self, snap: _Snapshot) -> None:
        self._tasks.restore(snap.tasks)
        self._index = snap.index
        self._history = ViewHistory(limit=self._history.limit, ids=snap.history)
        self._ids.reset(snap.next_id)

    @contextlib.contextmanager
    def _mutation(self, action: str) -> Iterator[None]:
        with self._lock:
            snap = self._snapshot()
            try:
                yield
                self._flush()
            except PersistenceIOError:
                logger.exception("%s: flush failed, in-memory state rolled back", action)
                self._rollback(snap)
                raise
            except TaskTrackerError as e:
                logger.debug("%s rejected: %s", action, e)
                self._rollback(snap)
                raise
            except Exception:
                logger.exception("%s crashed, in-memory state rolled back", action)
                self._rollback(snap)
                raise

    # ---- helpers ----

    def _now(self) -> datetime:
        return self._clock()

    def _check_schedule(
        self,
        task_id: int | None,
        start_time: datetime | None,
        duration: timedelta | None,
    ) -> None:
        if duration is not None and duration < timedelta(0):
            raise ValidationRejectedError("duration must not be negative")
        if start_time is not None and start_time.tzinfo is not None:
            # indexed windows are naive local time
            raise ValidationRejectedError("start time must not carry a UTC offset")
        if start_time is None or duration is None:
            return
        try:
            end = start_time + duration
        except OverflowError:
            raise ValidationRejectedError("schedule ends past the latest datetime") from None
        conflict = self._index.find_conflict(start_time, end, exclude_id=task_id)
        if conflict is not None:
            raise OverlapError(
                f"Time overlap detected: window {start_time.isoformat()} - {end.isoformat()} "
                f"overlaps task {conflict}",
                task_id=task_id,
                conflicting_id=conflict,
            )

    def _sync_index(self, task: Task) -> None:
        window = _window(task)
        if window is None:
            self._index.remove(task.id)
        elif task.id in self._index:
            self._index.update(task.id, *window)
        else:
            self._index.insert(task.id, *window)

    def _drop(self, task_id: int) -> Task | None:
        self._index.remove(task_id)
        self._history.remove(task_id)
        return self._tasks.pop(task_id)

    def _drop_epic(self, epic: Task) -> int:
        removed = 0
        for sub_id in sorted(epic.subtask_ids):
            if self._drop(sub_id) is not None:
                removed += 1
        if self._drop(epic.id) is not None:
            removed += 1
        return removed

    # ---- creation ----

    def create_task(self, request: NewTask) -> Task:
        with self._mutation("create_task"):
            self._check_schedule(None, request.start_time, request.duration)
            now = self._now()
            task = Task(
                id=self._ids.next_id(),
                kind=TaskKind.TASK,
                title=request.title,
                description=request.description,
                status=request.status,
                start_time=request.start_time,
                duration=request.duration,
                created_at=now,
                updated_at=now,
            )
            self._tasks.put(task)
            self._sync_index(task)
        logger.debug("Task created id=%s start=%s duration=%s", task.id, task.start_time, task.duration)
        return task

    def create_epic(self, request: NewEpic) -> Task:
        with self._mutation("create_epic"):
            now = self._now()
            task = Task(
                id=self._ids.next_id(),
                kind=TaskKind.EPIC,
                title=request.title,
                description=request.description,
                status=TaskStatus.NEW,
                created_at=now,
                updated_at=now,
            )
            self._tasks.put(task)
        logger.debug("Epic created id=%s", task.id)
        return task

    def create_subtask(self, request: NewSubTask) -> Task:
        with self._mutation("create_subtask"):
            if request.epic_id is None:
                raise ValidationRejectedError("subtask requires an owning epic id")
            epic = self._tasks.require(request.epic_id, TaskKind.EPIC)
            self._check_schedule(None, request.start_time, request.duration)
            now = self._now()
            task = Task(
                id=self._ids.next_id(),
                kind=TaskKind.SUBTASK,
                title=request.title,
                description=request.description,
                status=request.status,
                start_time=request.start_time,
                duration=request.duration,
                epic_id=epic.id,
                created_at=now,
                updated_at=now,
            )
            self._tasks.put(task)
            self._sync_index(task)
            self._tasks.refresh_epic(epic.id, now=now, attach=task.id)
        logger.debug("Subtask created id=%s epic_id=%s", task.id, task.epic_id)
        return task

    # ---- updates ----

    def update_task(self, request: TaskUpdate) -> Task:
        with self._mutation("update_task"):
            current = self._tasks.require(request.id, TaskKind.TASK)
            self._check_schedule(current.id, request.start_time, request.duration)
            updated = replace(
                current,
                title=request.title,
                description=request.description,
                status=request.status,
                start_time=request.start_time,
                duration=request.duration,
                updated_at=self._now(),
            )
            self._tasks.put(updated)
            self._sync_index(updated)
        logger.debug("Task updated id=%s status=%s", updated.id, updated.status.value)
        return updated

    def update_epic(self, request: EpicUpdate) -> Task:
        with self._mutation("update_epic"):
            self._tasks.require(request.id, TaskKind.EPIC)
            if (
                request.status is not None
                or request.start_time is not None
                or request.duration is not None
            ):
                logger.debug(
                    "Ignoring status/schedule in update of epic %s; they are derived from subtasks",
                    request.id,
                )
            updated = self._tasks.rename(request.id, request.title, request.description, self._now())
        return updated

    def update_subtask(self, request: SubTaskUpdate) -> Task:
        with self._mutation("update_subtask"):
            current = self._tasks.require(request.id, TaskKind.SUBTASK)
            old_epic_id = current.epic_id
            if old_epic_id is None:
                raise ValidationRejectedError(f"subtask {current.id} has no owning epic")
            new_epic_id = request.epic_id if request.epic_id is not None else old_epic_id
            if new_epic_id != old_epic_id:
                self._tasks.require(new_epic_id, TaskKind.EPIC)
            self._check_schedule(current.id, request.start_time, request.duration)

            now = self._now()
            updated = replace(
                current,
                title=request.title,
                description=request.description,
                status=request.status,
                start_time=request.start_time,
                duration=request.duration,
                epic_id=new_epic_id,
                updated_at=now,
            )
            self._tasks.put(updated)
            self._sync_index(updated)
            if new_epic_id != old_epic_id:
                self._tasks.refresh_epic(old_epic_id, now=now, detach=updated.id)
                self._tasks.refresh_epic(new_epic_id, now=now, attach=updated.id)
                logger.info("Subtask %s moved from epic %s to %s", updated.id, old_epic_id, new_epic_id)
            else:
                self._tasks.refresh_epic(new_epic_id, now=now)
        return updated

    # ---- deletion ----

    def delete_task(self, task_id: int) -> Task:
        """Delete one task; epics take their subtasks with them."""
        with self._mutation("delete_task"):
            task = self._tasks.require(task_id)
            if task.is_epic:
                self._drop_epic(task)
            else:
                self._drop(task.id)
                if task.is_subtask and task.epic_id is not None and task.epic_id in self._tasks:
                    self._tasks.refresh_epic(task.epic_id, now=self._now(), detach=task.id)
        logger.debug("Task deleted id=%s kind=%s", task.id, task.kind.value)
        return task

    def remove_tasks_by_kind(self, kind: TaskKind) -> int:
        """Delete every task of one kind with the same cascades as single deletions."""
        removed = 0
        with self._mutation("remove_tasks_by_kind"):
            targets = self._tasks.by_kind(kind)
            if kind == TaskKind.EPIC:
                for epic in targets:
                    removed += self._drop_epic(epic)
            else:
                affected: set[int] = set()
                for task in targets:
                    if self._drop(task.id) is not None:
                        removed += 1
                    if task.epic_id is not None:
                        affected.add(task.epic_id)
                now = self._now()
                for epic_id in sorted(affected):
                    if epic_id in self._tasks:
                        self._tasks.refresh_epic(epic_id, now=now)
        logger.info("Removed %d tasks of kind %s", removed, kind.value)
        return removed

    def clear_all(self) -> int:
        with self._mutation("clear_all"):
            removed = len(self._tasks)
            self._tasks.clear()
            self._index.clear()
            self._history.clear()
        logger.info("Cleared all tasks (%d removed)", removed)
        return removed

    # ---- queries ----

    def get_task(self, task_id: int) -> Task:
        """Return a task and record the view in history."""
        with self._mutation("get_task"):
            task = self._tasks.require(task_id)
            self._history.record_view(task_id)
        return task

    def list_all(self) -> tuple[Task, ...]:
        with self._lock:
            return self._tasks.all()

    def list_by_kind(self, kind: TaskKind) -> tuple[Task, ...]:
        with self._lock:
            return self._tasks.by_kind(kind)

    def list_subtasks_of(self, epic_id: int) -> tuple[Task, ...]:
        with self._lock:
            return self._tasks.subtasks_of(epic_id)

    def list_prioritized(self) -> tuple[Task, ...]:
        """Scheduled tasks and subtasks ordered by start time."""
        with self._lock:
            out: list[Task] = []
            for task_id in self._index.ordered_ids():
                task = self._tasks.get(task_id)
                if task is not None:
                    out.append(task)
            return tuple(out)

    def get_history(self) -> tuple[int, ...]:
        with self._lock:
            return self._history.get_history()

    def history_tasks(self) -> tuple[Task, ...]:
        with self._lock:
            out: list[Task] = []
            for task_id in self._history.get_history():
                task = self._tasks.get(task_id)
                if task is not None:
                    out.append(task)
            return tuple(out)

    def count(self) -> int:
        with self._lock:
            return len(self._tasks)
