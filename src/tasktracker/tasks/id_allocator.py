# src/tasktracker/tasks/id_allocator.py

from __future__ import annotations


class IdAllocator:
    """Monotonic integer ids. Not thread-safe on its own; TaskManager calls it under its lock."""

    def __init__(self, next_id: int = 1) -> None:
        if next_id < 1:
            raise ValueError("next_id must be >= 1")
        self._next = next_id

    def next_id(self) -> int:
        value = self._next
        self._next += 1
        return value

    def observe(self, task_id: int) -> None:
        """Make sure an id restored from storage is never issued again."""
        if task_id >= self._next:
            self._next = task_id + 1

    def peek(self) -> int:
        return self._next

    def reset(self, next_id: int) -> None:
        self._next = max(1, int(next_id))
