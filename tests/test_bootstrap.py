# tests/test_bootstrap.py

from __future__ import annotations

import pytest

from tasktracker.cli.bootstrap import create_initial_state
from tasktracker.core.errors import PersistenceFormatError
from tasktracker.tasks.task_models import NewTask


def test_state_is_wired_to_the_data_file(settings) -> None:
    state = create_initial_state(settings=settings)
    state.tasks.create_task(NewTask(title="persist me", description=""))

    assert settings.tasks_path.exists()
    reloaded = create_initial_state(settings=settings)
    assert [t.title for t in reloaded.tasks.list_all()] == ["persist me"]


def test_corrupt_file_refuses_to_start(settings) -> None:
    settings.tasks_path.parent.mkdir(parents=True)
    settings.tasks_path.write_text("not,a,task,file\n", "utf-8")

    with pytest.raises(PersistenceFormatError):
        create_initial_state(settings=settings)
