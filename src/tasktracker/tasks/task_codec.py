# src/tasktracker/tasks/task_codec.py

"""
CSV codec for the full task set plus view history.

Layout (UTF-8, every field quoted, quotes doubled inside values):

    "id","type","title","description","status","start_time","duration","epic_id","created","updated"
    <one record per task, ordered by id>
    <blank line>
    <history: task ids as fields, most recent last; omitted when empty>

Epic subtask sets are not stored: they are rebuilt from the subtask epic_id column,
and epic status/span are recomputed on load instead of trusting the stored values.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.errors import PersistenceFormatError
from .epic_rules import apply_summary, summarize_subtasks
from .history import ViewHistory
from .task_models import Task, TaskKind, TaskStatus

logger = logging.getLogger(__name__)

ENCODING = "utf-8"

CSV_HEADER: tuple[str, ...] = (
    "id",
    "type",
    "title",
    "description",
    "status",
    "start_time",
    "duration",
    "epic_id",
    "created",
    "updated",
)

_DURATION_RE = re.compile(r"PT(\d+)(?:\.(\d{1,6}))?S")
_ONE_MICROSECOND = timedelta(microseconds=1)


@dataclass(frozen=True, slots=True)
class DecodedState:
    tasks: tuple[Task, ...]
    history: tuple[int, ...]


# ---- field helpers ----


def format_duration(value: timedelta) -> str:
    if value < timedelta(0):
        raise ValueError("duration must not be negative")
    seconds, micros = divmod(value // _ONE_MICROSECOND, 1_000_000)
    if micros:
        return f"PT{seconds}.{micros:06d}S"
    return f"PT{seconds}S"


def parse_duration(raw: str) -> timedelta:
    m = _DURATION_RE.fullmatch(raw.strip())
    if not m:
        raise ValueError(f"malformed duration: {raw!r}")
    seconds = int(m.group(1))
    micros = int((m.group(2) or "0").ljust(6, "0"))
    try:
        return timedelta(seconds=seconds, microseconds=micros)
    except OverflowError:
        raise ValueError(f"duration out of range: {raw!r}") from None


def _fmt_dt(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def _parse_dt(raw: str, field_name: str) -> datetime | None:
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"malformed {field_name}: {raw!r}") from None
    # all stored times are naive local time
    if value.tzinfo is not None:
        raise ValueError(f"{field_name} must not carry a UTC offset: {raw!r}")
    return value


def _parse_id(raw: str, field_name: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"malformed {field_name}: {raw!r}") from None
    if value < 1:
        raise ValueError(f"{field_name} must be positive, got {value}")
    return value


class TaskCsvCodec:
    def serialize(self, tasks: Iterable[Task], history: Iterable[int]) -> bytes:
        buf = io.StringIO(newline="")
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for task in sorted(tasks, key=lambda t: t.id):
            writer.writerow(self._task_to_row(task))

        buf.write("\n")
        ids = [str(task_id) for task_id in history]
        if ids:
            writer.writerow(ids)
        return buf.getvalue().encode(ENCODING)

    def deserialize(self, data: bytes) -> DecodedState:
        if not data:
            raise PersistenceFormatError("task stream is empty")
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise PersistenceFormatError(f"task stream is not valid UTF-8: {e}") from e

        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        rows: list[tuple[int, list[str]]] = []
        try:
            for row in reader:
                rows.append((reader.line_num, row))
        except csv.Error as e:
            raise PersistenceFormatError(f"malformed CSV near line {reader.line_num}: {e}") from e

        if not rows:
            raise PersistenceFormatError("task stream is empty")

        _, header = rows[0]
        if tuple(header) != CSV_HEADER:
            raise PersistenceFormatError(f"unexpected header: {header!r}")

        pos = 1
        raw_tasks: list[Task] = []
        while pos < len(rows) and rows[pos][1]:
            line_num, row = rows[pos]
            try:
                raw_tasks.append(self._row_to_task(row))
            except ValueError as e:
                raise PersistenceFormatError(f"line {line_num}: {e}") from e
            pos += 1

        # skip separator, ignore trailing blank lines
        tail = [(n, r) for n, r in rows[pos + 1 :] if r]
        if len(tail) > 1:
            raise PersistenceFormatError(f"line {tail[1][0]}: unexpected data after history record")
        history_row = tail[0] if tail else None

        tasks = self._link(raw_tasks)
        history = self._history(history_row, tasks)
        return DecodedState(tasks=tuple(tasks[k] for k in sorted(tasks)), history=history)

    # ---- rows ----

    @staticmethod
    def _task_to_row(task: Task) -> list[str]:
        return [
            str(task.id),
            task.kind.value,
            task.title,
            task.description,
            task.status.value,
            _fmt_dt(task.start_time),
            format_duration(task.duration) if task.duration is not None else "",
            str(task.epic_id) if task.kind == TaskKind.SUBTASK and task.epic_id is not None else "",
            _fmt_dt(task.created_at),
            _fmt_dt(task.updated_at),
        ]

    @staticmethod
    def _row_to_task(row: list[str]) -> Task:
        if len(row) != len(CSV_HEADER):
            raise ValueError(f"expected {len(CSV_HEADER)} fields, got {len(row)}")

        (
            id_raw,
            kind_raw,
            title,
            description,
            status_raw,
            start_raw,
            duration_raw,
            epic_raw,
            created_raw,
            updated_raw,
        ) = row

        kind = TaskKind.parse(kind_raw)
        epic_id = _parse_id(epic_raw, "epic_id") if epic_raw.strip() else None
        if kind == TaskKind.SUBTASK and epic_id is None:
            raise ValueError("subtask record without epic_id")
        if kind != TaskKind.SUBTASK and epic_id is not None:
            raise ValueError(f"{kind.value} record must not carry an epic_id")

        task = Task(
            id=_parse_id(id_raw, "id"),
            kind=kind,
            title=title,
            description=description,
            status=TaskStatus.parse(status_raw),
            start_time=_parse_dt(start_raw, "start_time"),
            duration=parse_duration(duration_raw) if duration_raw else None,
            epic_id=epic_id,
            created_at=_parse_dt(created_raw, "created"),
            updated_at=_parse_dt(updated_raw, "updated"),
        )
        try:
            _ = task.end_time
        except OverflowError:
            raise ValueError("schedule ends past the latest datetime") from None
        return task

    # ---- relationships ----

    @staticmethod
    def _link(raw_tasks: list[Task]) -> dict[int, Task]:
        tasks: dict[int, Task] = {}
        for task in raw_tasks:
            if task.id in tasks:
                raise PersistenceFormatError(f"duplicate task id {task.id}")
            tasks[task.id] = task

        children: dict[int, list[Task]] = {t.id: [] for t in raw_tasks if t.is_epic}
        for task in raw_tasks:
            if not task.is_subtask:
                continue
            if task.epic_id is None or task.epic_id not in children:
                raise PersistenceFormatError(
                    f"subtask {task.id} references missing epic {task.epic_id}"
                )
            children[task.epic_id].append(task)

        for epic_id, subs in children.items():
            tasks[epic_id] = apply_summary(
                tasks[epic_id],
                summarize_subtasks(subs),
                subtask_ids=frozenset(s.id for s in subs),
            )
        return tasks

    @staticmethod
    def _history(row: tuple[int, list[str]] | None, tasks: dict[int, Task]) -> tuple[int, ...]:
        if row is None:
            return ()
        line_num, fields = row
        history = ViewHistory()
        for raw in fields:
            try:
                task_id = _parse_id(raw, "history id")
            except ValueError as e:
                raise PersistenceFormatError(f"line {line_num}: {e}") from e
            if task_id not in tasks:
                logger.warning("Skipping history entry for unknown task_id=%s", task_id)
                continue
            history.record_view(task_id)
        return history.get_history()
