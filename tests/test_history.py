# tests/test_history.py

from __future__ import annotations

import pytest

from tasktracker.tasks.history import ViewHistory


def test_revisit_moves_id_to_most_recent() -> None:
    h = ViewHistory()
    for task_id in (1, 2, 3):
        h.record_view(task_id)
    h.record_view(2)

    assert h.get_history() == (1, 3, 2)


def test_repeated_view_keeps_single_entry() -> None:
    h = ViewHistory()
    h.record_view(5)
    h.record_view(5)

    assert h.get_history() == (5,)
    assert len(h) == 1


def test_remove_head_middle_tail_and_unknown() -> None:
    h = ViewHistory(ids=[1, 2, 3, 4])
    h.remove(1)
    h.remove(3)
    h.remove(4)
    h.remove(99)

    assert h.get_history() == (2,)
    h.record_view(7)
    assert h.get_history() == (2, 7)


def test_snapshot_does_not_follow_later_changes() -> None:
    h = ViewHistory(ids=[1, 2])
    snap = h.get_history()
    h.record_view(3)
    h.remove(1)

    assert snap == (1, 2)


def test_limit_evicts_oldest() -> None:
    h = ViewHistory(limit=2)
    h.record_view(1)
    h.record_view(2)
    h.record_view(1)  # promotion, no eviction
    h.record_view(3)

    assert h.get_history() == (1, 3)
    assert 2 not in h


def test_clear_and_negative_limit() -> None:
    h = ViewHistory(ids=[1, 2])
    h.clear()
    assert h.get_history() == ()

    with pytest.raises(ValueError):
        ViewHistory(limit=-1)
