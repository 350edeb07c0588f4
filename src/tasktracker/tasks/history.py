# src/tasktracker/tasks/history.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Slot:
    prev: int | None = None
    next: int | None = None


class ViewHistory:
    """
    Task view history, most recent last.

    A doubly linked list threaded through a dict of slots keyed by task id:
    - record_view: unlink the id if present, then append at the tail (O(1)),
    - remove: unlink (O(1)); unknown ids are ignored,
    - get_history: tuple snapshot, never aliases internal state.

    `limit` > 0 bounds the length: recording a new id while full evicts the oldest one.
    """

    def __init__(self, limit: int = 0, ids: Iterable[int] = ()) -> None:
        if limit < 0:
            raise ValueError("limit must be >= 0")
        self._limit = int(limit)
        self._slots: dict[int, _Slot] = {}
        self._head: int | None = None
        self._tail: int | None = None
        for task_id in ids:
            self.record_view(task_id)

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._slots

    # ---- linking ----

    def _unlink(self, task_id: int) -> None:
        slot = self._slots.pop(task_id)
        if slot.prev is None:
            self._head = slot.next
        else:
            self._slots[slot.prev].next = slot.next
        if slot.next is None:
            self._tail = slot.prev
        else:
            self._slots[slot.next].prev = slot.prev

    def _append(self, task_id: int) -> None:
        slot = _Slot(prev=self._tail, next=None)
        if self._tail is None:
            self._head = task_id
        else:
            self._slots[self._tail].next = task_id
        self._tail = task_id
        self._slots[task_id] = slot

    # ---- public API ----

    def record_view(self, task_id: int) -> None:
        if task_id in self._slots:
            self._unlink(task_id)
        elif self._limit and len(self._slots) >= self._limit and self._head is not None:
            evicted = self._head
            self._unlink(evicted)
            logger.debug("History full (limit=%s), evicted task_id=%s", self._limit, evicted)
        self._append(task_id)

    def remove(self, task_id: int) -> None:
        if task_id in self._slots:
            self._unlink(task_id)

    def get_history(self) -> tuple[int, ...]:
        out: list[int] = []
        cur = self._head
        while cur is not None:
            out.append(cur)
            cur = self._slots[cur].next
        return tuple(out)

    def clear(self) -> None:
        self._slots.clear()
        self._head = None
        self._tail = None
