# tests/test_commands.py

from __future__ import annotations

from tasktracker.cli.commands import CommandRegistry, registry, split_args
from tasktracker.tasks.task_models import TaskStatus

from .fakes import FakeStorage


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")
    notes: list[str] = []

    assert reg.handle(state, "/a x y | z") == "h2:x y,z"
    assert reg.handle(state, "/b", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_split_args() -> None:
    assert split_args("  a b |c|  ") == ["a b", "c", ""]
    assert split_args("   ") == []


def test_create_show_and_history(state) -> None:
    out = registry.handle(state, "/task Write report | quarterly, draft | 2025-01-01T10:00 | 30")
    assert out is not None and out.startswith("Created #1 [TASK]")

    registry.handle(state, "/epic Launch | big one")
    registry.handle(state, "/sub 2 | Announce | blog post")
    shown = registry.handle(state, "/show 1") or ""
    assert "quarterly, draft" in shown
    registry.handle(state, "/show 3")

    history = registry.handle(state, "/history") or ""
    assert history.index("#1 ") < history.index("#3 ")
    assert state.tasks.get_history() == (1, 3)


def test_overlap_and_not_found_are_reported(state) -> None:
    registry.handle(state, "/task A | | 2025-01-01T10:00 | 30")

    out = registry.handle(state, "/task B | | 2025-01-01T10:15 | 30") or ""
    assert out.startswith("Rejected:")
    assert "Not found" in (registry.handle(state, "/show 99") or "")
    assert "Not found" in (registry.handle(state, "/sub 99 | x") or "")
    assert len(state.tasks.list_all()) == 1


def test_bad_arguments_show_usage(state) -> None:
    assert "Usage" in (registry.handle(state, "/task") or "")
    assert "Bad start time" in (registry.handle(state, "/task A | | tomorrow | 30") or "")
    assert "Bad duration" in (registry.handle(state, "/task A | | 2025-01-01T10:00 | half") or "")
    assert "Not a task id" in (registry.handle(state, "/show abc") or "")
    assert state.tasks.list_all() == ()


def test_set_updates_by_kind(state) -> None:
    registry.handle(state, "/epic E")
    registry.handle(state, "/sub 1 | S1")

    out = registry.handle(state, "/set 2 | status=done") or ""
    assert out.startswith("Updated #2")
    epic = state.tasks.list_all()[0]
    assert epic.status == TaskStatus.DONE

    out = registry.handle(state, "/set 1 | title=Renamed | status=NEW") or ""
    assert "ignored for epics: status" in out
    epic = state.tasks.list_all()[0]
    assert epic.title == "Renamed"
    assert epic.status == TaskStatus.DONE

    assert "Usage" in (registry.handle(state, "/set 2 | colour=red") or "")


def test_set_moves_subtask_between_epics(state) -> None:
    registry.handle(state, "/epic E1")
    registry.handle(state, "/epic E2")
    registry.handle(state, "/sub 1 | S")

    registry.handle(state, "/set 3 | epic=2")

    assert "no subtasks" in (registry.handle(state, "/subs 1") or "")
    assert "#3" in (registry.handle(state, "/subs 2") or "")


def test_rm_variants(state) -> None:
    registry.handle(state, "/epic E")
    registry.handle(state, "/sub 1 | S1")
    registry.handle(state, "/task T")

    assert registry.handle(state, "/rm 1") == "Deleted #1 and 1 subtasks."
    assert [t.id for t in state.tasks.list_all()] == [3]

    assert registry.handle(state, "/rm tasks") == "Removed 1 tasks (type TASK and dependents)."
    registry.handle(state, "/task again")
    assert registry.handle(state, "/rm all") == "Removed 1 tasks."
    assert "No tasks yet." in (registry.handle(state, "/list") or "")


def test_plan_orders_by_start(state) -> None:
    registry.handle(state, "/task late | | 2025-01-01T15:00 | 30")
    registry.handle(state, "/task early | | 2025-01-01T09:00 | 30")
    registry.handle(state, "/task unscheduled")

    lines = (registry.handle(state, "/plan") or "").splitlines()
    assert [line.split()[0] for line in lines] == ["#2", "#1"]


def test_storage_failure_is_reported(state, storage: FakeStorage) -> None:
    storage.fail_writes = True
    out = registry.handle(state, "/task T") or ""

    assert out.startswith("Storage error")
    assert state.tasks.list_all() == ()
