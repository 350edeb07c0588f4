# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasktracker.core.state import AppState
from tasktracker.tasks.task_manager import TaskManager

from .fakes import FakeClock, FakeStorage


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasktracker-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        tasks_path=tmp_path / "data" / "tasks.csv",
        history_limit=0,
        console_enabled=False,
    )


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def manager(storage: FakeStorage, clock: FakeClock) -> TaskManager:
    return TaskManager(storage, clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, manager: TaskManager) -> AppState:
    return AppState(settings=settings, tasks=manager)
