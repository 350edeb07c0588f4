# src/tasktracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the file storage, codec and clock into a TaskManager and hands it to AppState.

A corrupt data file raises PersistenceFormatError from here; the app must not start on it.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_codec import TaskCsvCodec
from ..tasks.task_manager import TaskManager
from ..tasks.task_store import TaskFileStorage

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_task_manager(settings) -> TaskManager:
    return TaskManager(
        TaskFileStorage(settings.tasks_path),
        codec=TaskCsvCodec(),
        history_limit=int(getattr(settings, "history_limit", 0) or 0),
        clock=datetime.now,
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    manager = create_task_manager(settings)
    logger.info("Task data file: %s", settings.tasks_path)
    return AppState(settings=settings, tasks=manager)
