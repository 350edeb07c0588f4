# src/tasktracker/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import cast

from ..core.errors import (
    OverlapError,
    PersistenceError,
    TaskNotFoundError,
    TaskTrackerError,
    ValidationRejectedError,
)
from ..core.state import AppState
from ..tasks.task_models import (
    EpicUpdate,
    NewEpic,
    NewSubTask,
    NewTask,
    SubTaskUpdate,
    Task,
    TaskKind,
    TaskStatus,
    TaskUpdate,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

ARG_SEPARATOR = "|"

logger = logging.getLogger(__name__)


class CommandArgError(ValueError):
    """Bad command arguments; the message is shown to the user as-is."""


class CommandRegistry:
    """
    Slash-command registry used by connectors (/help, /task, ...).

    Arguments after the command name are split on "|" so titles and descriptions
    may contain spaces: `/task Buy milk | before 18:00`.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command arg | arg".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].strip().split(maxsplit=1)
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = split_args(parts[1]) if len(parts) > 1 else []

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except CommandArgError as e:
            return str(e)
        except TaskNotFoundError as e:
            return f"Not found: {e}"
        except (OverlapError, ValidationRejectedError) as e:
            return f"Rejected: {e}"
        except PersistenceError as e:
            logger.error("Command /%s failed to persist: %s", name, e)
            return f"Storage error, nothing was changed: {e}"
        except TaskTrackerError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Quit.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument parsing ----


def split_args(raw: str) -> list[str]:
    raw = raw.strip()
    if not raw:
        return []
    return [p.strip() for p in raw.split(ARG_SEPARATOR)]


def _parse_id(raw: str) -> int:
    try:
        value = int(raw.strip().lstrip("#"))
    except ValueError:
        raise CommandArgError(f"Not a task id: {raw!r}") from None
    if value < 1:
        raise CommandArgError(f"Not a task id: {raw!r}")
    return value


def _parse_status(raw: str) -> TaskStatus:
    try:
        return TaskStatus.parse(raw.replace(" ", "_").replace("-", "_"))
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise CommandArgError(f"Unknown status {raw!r}. Use one of: {allowed}.") from None


def _parse_kind(raw: str) -> TaskKind:
    key = raw.strip().lower().rstrip("s")
    for kind in TaskKind:
        if kind.value.lower() == key:
            return kind
    raise CommandArgError(f"Unknown type {raw!r}. Use task, epic or subtask.")


def _parse_start(raw: str) -> datetime | None:
    raw = raw.strip()
    if not raw or raw == "-":
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise CommandArgError(f"Bad start time {raw!r}. Use ISO format, e.g. 2025-01-31T10:00.") from None


def _parse_minutes(raw: str) -> timedelta | None:
    raw = raw.strip()
    if not raw or raw == "-":
        return None
    try:
        minutes = int(raw)
    except ValueError:
        raise CommandArgError(f"Bad duration {raw!r}. Use whole minutes, e.g. 30.") from None
    return timedelta(minutes=minutes)


def _optional(args: list[str], idx: int) -> str:
    return args[idx] if len(args) > idx else ""


# ---- formatting ----


def _fmt_minutes(value: timedelta) -> str:
    return f"{int(value.total_seconds() // 60)}m"


def format_task(task: Task) -> str:
    kind = task.kind.value
    if task.is_subtask:
        kind = f"{kind} of #{task.epic_id}"
    elif task.is_epic:
        kind = f"{kind}, {len(task.subtask_ids)} subtasks"

    line = f"#{task.id} [{kind}] {task.status.value} {task.title}"
    if task.start_time is not None:
        line += f" @ {task.start_time.isoformat(sep=' ', timespec='minutes')}"
        if task.duration is not None:
            line += f" +{_fmt_minutes(task.duration)}"
    return line


def format_task_details(task: Task) -> str:
    lines = [format_task(task)]
    if task.description:
        lines.append(f"  {task.description}")
    end = task.end_time
    if end is not None:
        lines.append(f"  ends: {end.isoformat(sep=' ', timespec='minutes')}")
    if task.is_epic and task.subtask_ids:
        ids = ", ".join(f"#{i}" for i in sorted(task.subtask_ids))
        lines.append(f"  subtasks: {ids}")
    return "\n".join(lines)


def _format_list(tasks: tuple[Task, ...] | list[Task], empty: str) -> str:
    if not tasks:
        return empty
    return "\n".join(format_task(t) for t in tasks)


def _find(state: AppState, task_id: int) -> Task:
    """Lookup without touching view history."""
    for task in state.tasks.list_all():
        if task.id == task_id:
            return task
    raise TaskNotFoundError(task_id)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    tasks = state.tasks.list_all()
    counts = {kind: 0 for kind in TaskKind}
    for t in tasks:
        counts[t.kind] += 1
    limit = int(getattr(state.settings, "history_limit", 0) or 0)
    return (
        "Status:\n"
        f"  Data file: {getattr(state.settings, 'tasks_path', '?')}\n"
        f"  Tasks: {counts[TaskKind.TASK]}, epics: {counts[TaskKind.EPIC]}, "
        f"subtasks: {counts[TaskKind.SUBTASK]}\n"
        f"  History: {len(state.tasks.get_history())} (limit: {limit or 'none'})"
    )


def cmd_task(state: AppState, args: list[str]) -> str:
    """
    /task <title> | <description> [| <start> | <minutes>]
    """
    if not args or not args[0]:
        raise CommandArgError("Usage: /task <title> | <description> [| <start> | <minutes>]")
    task = state.tasks.create_task(
        NewTask(
            title=args[0],
            description=_optional(args, 1),
            start_time=_parse_start(_optional(args, 2)),
            duration=_parse_minutes(_optional(args, 3)),
        )
    )
    return f"Created {format_task(task)}"


def cmd_epic(state: AppState, args: list[str]) -> str:
    if not args or not args[0]:
        raise CommandArgError("Usage: /epic <title> | <description>")
    epic = state.tasks.create_epic(NewEpic(title=args[0], description=_optional(args, 1)))
    return f"Created {format_task(epic)}"


def cmd_sub(state: AppState, args: list[str]) -> str:
    """
    /sub <epic id> | <title> | <description> [| <start> | <minutes>]
    """
    if len(args) < 2 or not args[1]:
        raise CommandArgError(
            "Usage: /sub <epic id> | <title> | <description> [| <start> | <minutes>]"
        )
    sub = state.tasks.create_subtask(
        NewSubTask(
            epic_id=_parse_id(args[0]),
            title=args[1],
            description=_optional(args, 2),
            start_time=_parse_start(_optional(args, 3)),
            duration=_parse_minutes(_optional(args, 4)),
        )
    )
    return f"Created {format_task(sub)}"


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        raise CommandArgError("Usage: /show <id>")
    return format_task_details(state.tasks.get_task(_parse_id(args[0])))


_SET_KEYS = ("title", "desc", "status", "start", "minutes", "epic")


def cmd_set(state: AppState, args: list[str]) -> str:
    """
    /set <id> | key=value | key=value ...

    Keys: title, desc, status, start, minutes, epic (subtasks only).
    Unmentioned fields keep their current values; start=- / minutes=- clear the schedule.
    """
    usage = "Usage: /set <id> | key=value ... (keys: " + ", ".join(_SET_KEYS) + ")"
    if len(args) < 2:
        raise CommandArgError(usage)

    current = _find(state, _parse_id(args[0]))
    changes: dict[str, str] = {}
    for pair in args[1:]:
        key, sep, value = pair.partition("=")
        key = key.strip().lower()
        if not sep or key not in _SET_KEYS:
            raise CommandArgError(usage)
        changes[key] = value.strip()

    title = changes.get("title", current.title)
    description = changes.get("desc", current.description)
    status = _parse_status(changes["status"]) if "status" in changes else current.status
    start = _parse_start(changes["start"]) if "start" in changes else current.start_time
    duration = _parse_minutes(changes["minutes"]) if "minutes" in changes else current.duration

    if current.is_epic:
        updated = state.tasks.update_epic(
            EpicUpdate(id=current.id, title=title, description=description)
        )
        ignored = sorted(k for k in changes if k in ("status", "start", "minutes", "epic"))
        reply = f"Updated {format_task(updated)}"
        if ignored:
            reply += f"\n  (ignored for epics: {', '.join(ignored)})"
        return reply

    if current.is_subtask:
        updated = state.tasks.update_subtask(
            SubTaskUpdate(
                id=current.id,
                title=title,
                description=description,
                status=status,
                start_time=start,
                duration=duration,
                epic_id=_parse_id(changes["epic"]) if "epic" in changes else None,
            )
        )
        return f"Updated {format_task(updated)}"

    if "epic" in changes:
        raise CommandArgError("Only subtasks can be moved to another epic.")
    updated = state.tasks.update_task(
        TaskUpdate(
            id=current.id,
            title=title,
            description=description,
            status=status,
            start_time=start,
            duration=duration,
        )
    )
    return f"Updated {format_task(updated)}"


def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /rm <id>        -> delete one task (epics take their subtasks along)
    /rm <type>      -> delete every task of one type (tasks | epics | subtasks)
    /rm all         -> delete everything
    """
    if not args or not args[0]:
        raise CommandArgError("Usage: /rm <id> | /rm tasks|epics|subtasks | /rm all")

    target = args[0].strip().lower()
    if target == "all":
        if emit:
            emit("Removing every task...")
        removed = state.tasks.clear_all()
        return f"Removed {removed} tasks."

    if not target.lstrip("#").isdigit():
        kind = _parse_kind(target)
        removed = state.tasks.remove_tasks_by_kind(kind)
        return f"Removed {removed} tasks (type {kind.value} and dependents)."

    task = state.tasks.delete_task(_parse_id(target))
    extra = f" and {len(task.subtask_ids)} subtasks" if task.is_epic and task.subtask_ids else ""
    return f"Deleted #{task.id}{extra}."


def cmd_list(state: AppState, args: list[str]) -> str:
    if args and args[0]:
        kind = _parse_kind(args[0])
        return _format_list(state.tasks.list_by_kind(kind), f"No {kind.value.lower()}s.")
    return _format_list(state.tasks.list_all(), "No tasks yet.")


def cmd_subs(state: AppState, args: list[str]) -> str:
    if not args:
        raise CommandArgError("Usage: /subs <epic id>")
    epic_id = _parse_id(args[0])
    return _format_list(state.tasks.list_subtasks_of(epic_id), f"Epic #{epic_id} has no subtasks.")


def cmd_plan(state: AppState, args: list[str]) -> str:
    return _format_list(state.tasks.list_prioritized(), "Nothing is scheduled.")


def cmd_history(state: AppState, args: list[str]) -> str:
    tasks = state.tasks.history_tasks()
    if not tasks:
        return "History is empty."
    lines = ["Recently viewed (most recent last):"]
    lines.extend(f"  {format_task(t)}" for t in tasks)
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show data file, counts and history size.")
registry.register(
    "task", cmd_task, help_text="Create a task: /task title | description [| start | minutes]."
)
registry.register("epic", cmd_epic, help_text="Create an epic: /epic title | description.")
registry.register(
    "sub",
    cmd_sub,
    help_text="Create a subtask: /sub epic_id | title | description [| start | minutes].",
)
registry.register("show", cmd_show, help_text="Show a task and record the view: /show id.")
registry.register(
    "set",
    cmd_set,
    help_text="Edit a task: /set id | status=DONE | title=... | start=... | minutes=... | epic=...",
)
registry.register("rm", cmd_rm, help_text="Delete: /rm id | /rm tasks|epics|subtasks | /rm all.")
registry.register("list", cmd_list, help_text="List tasks: /list [task|epic|subtask].", aliases=["ls"])
registry.register("subs", cmd_subs, help_text="List subtasks of an epic: /subs epic_id.")
registry.register("plan", cmd_plan, help_text="Scheduled tasks ordered by start time.")
registry.register("history", cmd_history, help_text="Recently viewed tasks.")
