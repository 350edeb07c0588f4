# tests/test_schedule_index.py

from __future__ import annotations

from datetime import timedelta

import pytest

from tasktracker.tasks.schedule_index import ScheduleIndex, intervals_overlap

from .fakes import at


def test_touching_windows_do_not_overlap() -> None:
    assert not intervals_overlap(at(10), at(10, 30), at(10, 30), at(11))
    assert not intervals_overlap(at(10, 30), at(11), at(10), at(10, 30))
    assert intervals_overlap(at(10), at(10, 30), at(10, 15), at(10, 45))


def test_find_conflict_reports_overlapping_id() -> None:
    idx = ScheduleIndex()
    idx.insert(1, at(10), at(10, 30))
    idx.insert(2, at(12), at(13))

    assert idx.find_conflict(at(10, 15), at(10, 45)) == 1
    assert idx.find_conflict(at(11), at(12, 30)) == 2
    assert idx.find_conflict(at(10, 30), at(12)) is None
    assert idx.find_conflict(at(9), at(14)) in (1, 2)


def test_exclude_id_skips_own_window() -> None:
    idx = ScheduleIndex()
    idx.insert(1, at(10), at(11))

    assert idx.check_overlap(at(10, 30), at(11, 30))
    assert not idx.check_overlap(at(10, 30), at(11, 30), exclude_id=1)


def test_probe_reaches_long_window_behind_short_ones() -> None:
    idx = ScheduleIndex()
    idx.insert(1, at(8), at(9))
    idx.insert(2, at(9), at(9, 30))
    idx.insert(3, at(9, 30), at(9, 45))

    assert idx.find_conflict(at(8, 30), at(8, 45)) == 1
    assert idx.find_conflict(at(9, 44), at(10)) == 3
    assert idx.find_conflict(at(9, 45), at(10)) is None


def test_update_and_remove_keep_order() -> None:
    idx = ScheduleIndex()
    idx.insert(1, at(12), at(13))
    idx.insert(2, at(10), at(11))
    assert idx.ordered_ids() == [2, 1]

    idx.update(1, at(8), at(9))
    assert idx.ordered_ids() == [1, 2]
    assert idx.window(1) == (at(8), at(9))

    idx.remove(2)
    idx.remove(42)
    assert idx.ordered_ids() == [1]
    assert 2 not in idx
    assert len(idx) == 1


def test_insert_rejects_duplicates_and_reversed_windows() -> None:
    idx = ScheduleIndex()
    idx.insert(1, at(10), at(11))
    with pytest.raises(ValueError):
        idx.insert(1, at(12), at(13))
    with pytest.raises(ValueError):
        idx.insert(2, at(11), at(10))


def test_copy_is_independent() -> None:
    idx = ScheduleIndex()
    idx.insert(1, at(10), at(10) + timedelta(minutes=5))
    clone = idx.copy()
    clone.remove(1)

    assert 1 in idx
    assert 1 not in clone
