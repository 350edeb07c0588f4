# src/tasktracker/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from ..core.errors import PersistenceIOError

logger = logging.getLogger(__name__)


class TaskFileStorage:
    """
    Single-file byte storage for the task CSV.

    - read_bytes(): whole file, or None when it does not exist yet
    - write_bytes(): temp file in the same directory + fsync + os.replace, so a crash
      mid-write leaves the previous version intact
    """

    def __init__(self, path: str | Path = "tasks.csv") -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read_bytes(self) -> bytes | None:
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceIOError(f"Failed to read tasks from {self._path}: {e}") from e

    def write_bytes(self, data: bytes) -> None:
        tmp: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=self._path.name, suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
            tmp = None
        except OSError as e:
            raise PersistenceIOError(f"Failed to save tasks to {self._path}: {e}") from e
        finally:
            if tmp is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
        logger.debug("Saved %d bytes to %s", len(data), self._path)
