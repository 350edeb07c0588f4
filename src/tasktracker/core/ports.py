# src/tasktracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage backends and codecs swappable and makes testing easier.
"""

from collections.abc import Iterable
from typing import Any, Protocol


class TaskStorage(Protocol):
    """
    Durable byte storage for the full task state.

    read_bytes() returns None when nothing has been stored yet.
    Both methods raise PersistenceIOError when the backend is unreachable.
    """

    def read_bytes(self) -> bytes | None: ...
    def write_bytes(self, data: bytes) -> None: ...


class TaskCodec(Protocol):
    def serialize(self, tasks: Iterable[Any], history: Iterable[int]) -> bytes: ...
    def deserialize(self, data: bytes) -> Any: ...


class TaskRepo(Protocol):
    """Surface of TaskManager used by the command layer."""

    # Creation
    def create_task(self, request: Any) -> Any: ...
    def create_epic(self, request: Any) -> Any: ...
    def create_subtask(self, request: Any) -> Any: ...

    # Updates
    def update_task(self, request: Any) -> Any: ...
    def update_epic(self, request: Any) -> Any: ...
    def update_subtask(self, request: Any) -> Any: ...

    # Deletion
    def delete_task(self, task_id: int) -> Any: ...
    def remove_tasks_by_kind(self, kind: Any) -> int: ...
    def clear_all(self) -> int: ...

    # Queries
    def get_task(self, task_id: int) -> Any: ...
    def list_all(self) -> tuple[Any, ...]: ...
    def list_by_kind(self, kind: Any) -> tuple[Any, ...]: ...
    def list_subtasks_of(self, epic_id: int) -> tuple[Any, ...]: ...
    def list_prioritized(self) -> tuple[Any, ...]: ...
    def get_history(self) -> tuple[int, ...]: ...
    def history_tasks(self) -> tuple[Any, ...]: ...
    def count(self) -> int: ...
