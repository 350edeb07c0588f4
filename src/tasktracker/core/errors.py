# src/tasktracker/core/errors.py

"""
Typed failures raised by the task core.

NotFound / Overlap / ValidationRejected are expected outcomes of a single call and never leave
partial state behind. Persistence errors come from the storage layer: a format error aborts a
load, an IO error fails the mutation that tried to flush.
"""

from __future__ import annotations


class TaskTrackerError(Exception):
    """Base class for every error raised by tasktracker."""


class TaskNotFoundError(TaskTrackerError):
    def __init__(self, task_id: int, what: str = "Task") -> None:
        super().__init__(f"{what} with id {task_id} does not exist")
        self.task_id = task_id


class OverlapError(TaskTrackerError):
    def __init__(
        self,
        message: str,
        *,
        task_id: int | None = None,
        conflicting_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.task_id = task_id
        self.conflicting_id = conflicting_id


class ValidationRejectedError(TaskTrackerError):
    """Structurally invalid request that reached the core (wrong kind, missing epic id, ...)."""


class PersistenceError(TaskTrackerError):
    pass


class PersistenceFormatError(PersistenceError):
    """Stored data is corrupt or malformed; nothing from it is loaded."""


class PersistenceIOError(PersistenceError):
    """Backing storage could not be read or written."""
