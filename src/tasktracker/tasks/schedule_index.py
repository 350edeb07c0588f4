# src/tasktracker/tasks/schedule_index.py

"""
Interval index over scheduled (non-epic) tasks.

Windows are half-open: [start, end). Two windows overlap iff
    start_a < end_b and start_b < end_a
so a task ending exactly when another starts is fine.

Entries are kept sorted by (start, end, id). Indexed windows never overlap each other,
which makes their ends non-decreasing in that order as well; an overlap probe therefore
walks backwards from the last entry starting before the candidate's end and stops at the
first entry that ends at or before the candidate's start.
"""

from __future__ import annotations

import bisect
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

_Entry = tuple[datetime, datetime, int]


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    return start_a < end_b and start_b < end_a


class ScheduleIndex:
    def __init__(self) -> None:
        self._entries: list[_Entry] = []
        self._by_id: dict[int, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._by_id

    def window(self, task_id: int) -> tuple[datetime, datetime] | None:
        entry = self._by_id.get(task_id)
        if entry is None:
            return None
        return entry[0], entry[1]

    def find_conflict(
        self, start: datetime, end: datetime, exclude_id: int | None = None
    ) -> int | None:
        """Return the id of an indexed task overlapping [start, end), or None."""
        if end < start:
            raise ValueError("end must not be before start")

        # entries[:pos] all start strictly before `end`
        pos = bisect.bisect_left(self._entries, end, key=lambda e: e[0])
        for i in range(pos - 1, -1, -1):
            e_start, e_end, e_id = self._entries[i]
            if e_end <= start:
                break
            if e_id == exclude_id:
                continue
            if intervals_overlap(start, end, e_start, e_end):
                return e_id
        return None

    def check_overlap(
        self, start: datetime, end: datetime, exclude_id: int | None = None
    ) -> bool:
        return self.find_conflict(start, end, exclude_id) is not None

    def insert(self, task_id: int, start: datetime, end: datetime) -> None:
        if task_id in self._by_id:
            raise ValueError(f"task {task_id} is already indexed")
        if end < start:
            raise ValueError("end must not be before start")
        entry = (start, end, task_id)
        bisect.insort(self._entries, entry)
        self._by_id[task_id] = entry

    def remove(self, task_id: int) -> None:
        entry = self._by_id.pop(task_id, None)
        if entry is None:
            return
        pos = bisect.bisect_left(self._entries, entry)
        if pos < len(self._entries) and self._entries[pos] == entry:
            del self._entries[pos]
        else:  # pragma: no cover - would mean the two views drifted apart
            logger.error("ScheduleIndex out of sync for task_id=%s", task_id)
            self._entries = [e for e in self._entries if e[2] != task_id]

    def update(self, task_id: int, start: datetime, end: datetime) -> None:
        self.remove(task_id)
        self.insert(task_id, start, end)

    def ordered_ids(self) -> list[int]:
        return [e[2] for e in self._entries]

    def clear(self) -> None:
        self._entries.clear()
        self._by_id.clear()

    def copy(self) -> ScheduleIndex:
        other = ScheduleIndex()
        other._entries = list(self._entries)
        other._by_id = dict(self._by_id)
        return other
