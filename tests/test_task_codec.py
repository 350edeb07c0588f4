# tests/test_task_codec.py

from __future__ import annotations

from datetime import timedelta

import pytest

from tasktracker.core.errors import PersistenceFormatError
from tasktracker.tasks.task_codec import (
    CSV_HEADER,
    TaskCsvCodec,
    format_duration,
    parse_duration,
)
from tasktracker.tasks.task_models import Task, TaskKind, TaskStatus

from .fakes import at

HEADER = ",".join(f'"{h}"' for h in CSV_HEADER)


def _sample_tasks() -> list[Task]:
    return [
        Task(
            id=1,
            kind=TaskKind.TASK,
            title='Call "Bob", then Alice',
            description="line one\nline two, with comma",
            status=TaskStatus.IN_PROGRESS,
            start_time=at(10),
            duration=timedelta(minutes=30),
            created_at=at(8),
            updated_at=at(8, 5),
        ),
        Task(
            id=2,
            kind=TaskKind.EPIC,
            title="Release",
            description="",
            status=TaskStatus.IN_PROGRESS,
            start_time=at(12),
            duration=timedelta(hours=1),
            subtask_ids=frozenset({3, 4}),
            created_at=at(8),
            updated_at=at(8),
        ),
        Task(
            id=3,
            kind=TaskKind.SUBTASK,
            title="Tag",
            description="git tag",
            status=TaskStatus.DONE,
            start_time=at(12),
            duration=timedelta(minutes=20),
            epic_id=2,
            created_at=at(8),
            updated_at=at(8),
        ),
        Task(
            id=4,
            kind=TaskKind.SUBTASK,
            title="Publish",
            description="",
            status=TaskStatus.NEW,
            start_time=at(12, 30),
            duration=timedelta(minutes=30),
            epic_id=2,
            created_at=at(8),
            updated_at=at(8),
        ),
    ]


def test_round_trip_is_a_fixed_point() -> None:
    codec = TaskCsvCodec()
    tasks = _sample_tasks()

    decoded = codec.deserialize(codec.serialize(tasks, [3, 1]))

    assert list(decoded.tasks) == tasks
    assert decoded.history == (3, 1)
    assert codec.serialize(decoded.tasks, decoded.history) == codec.serialize(tasks, [3, 1])


def test_layout_header_rows_separator_history() -> None:
    codec = TaskCsvCodec()
    task = Task(id=7, kind=TaskKind.TASK, title="a", description="b", status=TaskStatus.NEW)

    text = codec.serialize([task], [7]).decode("utf-8")

    assert text == (
        f"{HEADER}\n"
        '"7","TASK","a","b","NEW","","","","",""\n'
        "\n"
        '"7"\n'
    )


def test_empty_history_has_no_record() -> None:
    text = TaskCsvCodec().serialize([], []).decode("utf-8")
    assert text == f"{HEADER}\n\n"
    assert TaskCsvCodec().deserialize(text.encode()).tasks == ()


def test_epic_status_is_recomputed_on_load() -> None:
    text = (
        f"{HEADER}\n"
        '"1","EPIC","e","","DONE","","","","",""\n'
        '"2","SUBTASK","s","","NEW","2025-01-01T10:00:00","PT600S","1","",""\n'
        "\n"
    )
    decoded = TaskCsvCodec().deserialize(text.encode())
    epic, sub = decoded.tasks

    assert epic.status == TaskStatus.NEW
    assert epic.subtask_ids == frozenset({2})
    assert epic.start_time == at(10)
    assert epic.duration == timedelta(minutes=10)
    assert sub.epic_id == 1


def test_unknown_history_ids_are_skipped() -> None:
    text = f'{HEADER}\n"1","TASK","t","","NEW","","","","",""\n\n"9","1","9"\n'
    assert TaskCsvCodec().deserialize(text.encode()).history == (1,)


@pytest.mark.parametrize(
    "body",
    [
        pytest.param('"1","TASK","t","","NEW","","",""\n', id="short-row"),
        pytest.param('"x","TASK","t","","NEW","","","","",""\n', id="bad-id"),
        pytest.param('"1","STORY","t","","NEW","","","","",""\n', id="bad-type"),
        pytest.param('"1","TASK","t","","LATER","","","","",""\n', id="bad-status"),
        pytest.param('"1","TASK","t","","NEW","yesterday","","","",""\n', id="bad-date"),
        pytest.param('"1","TASK","t","","NEW","","30m","","",""\n', id="bad-duration"),
        pytest.param(
            '"1","TASK","t","","NEW","2025-01-01T10:00:00","PT99999999999999999999S","","",""\n',
            id="duration-out-of-range",
        ),
        pytest.param(
            '"1","TASK","t","","NEW","9999-12-31T23:00:00","PT7200S","","",""\n',
            id="ends-after-datetime-max",
        ),
        pytest.param(
            '"1","TASK","t","","NEW","2025-01-01T10:00:00","PT600S","","",""\n'
            '"2","TASK","t","","NEW","2025-01-01T11:00:00+02:00","PT600S","","",""\n',
            id="offset-aware-start",
        ),
        pytest.param('"1","SUBTASK","t","","NEW","","","5","",""\n', id="orphan-subtask"),
        pytest.param(
            '"1","TASK","t","","NEW","","","","",""\n"2","SUBTASK","t","","NEW","","","1","",""\n',
            id="subtask-of-plain-task",
        ),
        pytest.param(
            '"1","TASK","t","","NEW","","","","",""\n"1","TASK","t","","NEW","","","","",""\n',
            id="duplicate-id",
        ),
        pytest.param('"1","TASK","never closed\n', id="open-quote"),
        pytest.param('"1","TASK","t","","NEW","","","","",""\n\n"1"\n"garbage"\n', id="trailing"),
    ],
)
def test_malformed_streams_are_rejected(body: str) -> None:
    with pytest.raises(PersistenceFormatError):
        TaskCsvCodec().deserialize(f"{HEADER}\n{body}".encode())


def test_empty_stream_bad_header_and_bad_bytes() -> None:
    codec = TaskCsvCodec()
    with pytest.raises(PersistenceFormatError):
        codec.deserialize(b"")
    with pytest.raises(PersistenceFormatError):
        codec.deserialize(b'"id","title"\n')
    with pytest.raises(PersistenceFormatError):
        codec.deserialize(HEADER.encode() + b'\n"1","TASK","\xff","","NEW","","","","",""\n')


def test_duration_format() -> None:
    assert format_duration(timedelta(minutes=30)) == "PT1800S"
    assert format_duration(timedelta(seconds=1, microseconds=500)) == "PT1.000500S"
    assert parse_duration("PT1.5S") == timedelta(seconds=1, milliseconds=500)
    with pytest.raises(ValueError):
        format_duration(timedelta(seconds=-1))
    with pytest.raises(ValueError):
        parse_duration("P1D")
