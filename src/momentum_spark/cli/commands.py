# src/momentum_spark/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import fields
from datetime import timedelta
from typing import Any, cast

from ..client.preferences import AppSettings
from ..core.dates import format_date, iso_timestamp, local_now
from ..core.progress import daily_progress, monthly_progress, monthly_trend
from ..core.state import ConsoleState
from ..core.views import TaskFilter, group_tasks
from ..tasks.task_models import MessageType, Task

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[ConsoleState, list[str]], CommandResult]
CommandHandler3 = Callable[[ConsoleState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

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

    async def handle(
        self,
        state: ConsoleState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _format_task(task: Task) -> str:
    mark = "x" if task.is_completed else " "
    audio = " [audio]" if task.message_type == MessageType.AUDIO else ""
    return f"  [{mark}] #{task.id} {task.title} (w{task.weight}, due {format_date(task.due_date)}){audio}"


def _parse_id(args: list[str]) -> int | None:
    if len(args) != 1:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


def _drain(state: ConsoleState) -> list[str]:
    return [f"[{title}] {description}" for title, description in state.drain_notices()]


async def _reminder_lines(state: ConsoleState) -> list[str]:
    await state.notifier.check_upcoming(state.sync.tasks, state.app_settings)
    return _drain(state)


def cmd_help(state: ConsoleState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: ConsoleState, args: list[str]) -> str:
    """
    /list                  -> pending milestones
    /list all|completed    -> change the filter
    /list pending <text>   -> filter + search in title/description
    """
    task_filter = TaskFilter.PENDING
    search = ""
    if args:
        try:
            task_filter = TaskFilter(args[0].lower())
            search = " ".join(args[1:])
        except ValueError:
            search = " ".join(args)

    groups = group_tasks(state.sync.tasks, search=search, filter=task_filter)
    lines = ["Daily goals:"]
    lines += [_format_task(t) for t in groups.daily] or ["  (none)"]
    lines.append(f"Long-term milestones ({task_filter}):")
    lines += [_format_task(t) for t in groups.long_term] or ["  (none)"]
    lines.append("Completed this month:")
    lines += [_format_task(t) for t in groups.completed_this_month] or ["  (none)"]
    return "\n".join(lines)


async def cmd_add(state: ConsoleState, args: list[str]) -> str:
    """
    /add <title> | <weight> | <days> [| daily] [| audio]
    """
    usage = "Usage: /add <title> | <weight> | <days from today> [| daily] [| audio]"
    parts = [p.strip() for p in " ".join(args).split("|")]
    if len(parts) < 3 or not parts[0]:
        return usage
    try:
        weight = int(parts[1])
        days = int(parts[2])
    except ValueError:
        return usage

    flags = {p.lower() for p in parts[3:] if p}
    unknown = flags - {"daily", "audio"}
    if unknown:
        return usage

    due = local_now() + timedelta(days=days)
    task = await state.sync.create_task(
        {
            "title": parts[0],
            "weight": weight,
            "dueDate": iso_timestamp(due),
            "isRecurring": "daily" in flags,
            "messageType": "audio" if "audio" in flags else "text",
        }
    )
    lines = _drain(state)
    if task is None:
        return "\n".join(["Task was not created.", *lines])
    return "\n".join([f'Task "{task.title}" added as #{task.id}.', *lines])


async def cmd_done(state: ConsoleState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /done <id>"
    current = state.sync.get_task(task_id)
    if current is None:
        return f"No task #{task_id}. Use /reload to refresh the list."
    if current.is_completed:
        return f'"{current.title}" is already completed.'

    task = await state.sync.toggle_completion(task_id, True)
    if task is None:
        return "\n".join(["Task was not updated.", *_drain(state)])

    lines = [f'Completed "{task.title}".']
    result = await state.notifier.on_toggled(task, True, state.app_settings)
    if result is not None:
        message, message_type = result
        prefix = "[audio] " if message_type == MessageType.AUDIO else ""
        lines.append(f"{prefix}{message}")
    lines += _drain(state)
    lines += await _reminder_lines(state)
    return "\n".join(lines)


async def cmd_undo(state: ConsoleState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /undo <id>"
    current = state.sync.get_task(task_id)
    if current is None:
        return f"No task #{task_id}. Use /reload to refresh the list."
    if not current.is_completed:
        return f'"{current.title}" is already pending.'

    task = await state.sync.toggle_completion(task_id, False)
    if task is None:
        return "\n".join(["Task was not updated.", *_drain(state)])
    return "\n".join([f'Marked "{task.title}" as pending.', *await _reminder_lines(state)])


async def cmd_rm(state: ConsoleState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /rm <id>"
    task = state.sync.get_task(task_id)
    if task is None:
        return f"No task #{task_id}. Use /reload to refresh the list."

    if not await state.sync.delete_task(task_id):
        return "\n".join(["Task was not deleted.", *_drain(state)])
    return f'"{task.title}" has been removed.'


def cmd_progress(state: ConsoleState, args: list[str]) -> str:
    tasks = state.sync.tasks
    return (
        "Progress:\n"
        f"  Today: {daily_progress(tasks):.0f}%\n"
        f"  This month: {monthly_progress(tasks):.0f}%"
    )


def cmd_trend(state: ConsoleState, args: list[str]) -> str:
    lines = ["Monthly trend (cumulative %):"]
    for point in monthly_trend(state.sync.tasks):
        if point.progress is None:
            continue
        bar = "#" * (point.progress // 5)
        lines.append(f"  {point.name:>2} {point.progress:>3}% {bar}")
    return "\n".join(lines)


def _coerce_setting(name: str, raw: str) -> Any:
    default = getattr(AppSettings(), name)
    if isinstance(default, bool):
        lowered = raw.lower()
        if lowered in ("on", "1", "true", "yes"):
            return True
        if lowered in ("off", "0", "false", "no"):
            return False
        raise ValueError(f"{name} expects on/off")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name} expects a number") from None
    return raw


def cmd_settings(state: ConsoleState, args: list[str]) -> str:
    """
    /settings              -> show current preferences
    /settings <key> <value> -> change one preference and save it
    """
    names = [f.name for f in fields(AppSettings)]
    if not args:
        current = state.app_settings
        lines = ["Settings:"]
        lines += [f"  {name}: {getattr(current, name)}" for name in names]
        return "\n".join(lines)

    if len(args) < 2:
        return f"Usage: /settings <key> <value>. Keys: {', '.join(names)}"

    name, raw = args[0], " ".join(args[1:])
    if name not in names:
        return f"Unknown setting: {name}. Keys: {', '.join(names)}"
    try:
        value = _coerce_setting(name, raw)
    except ValueError as e:
        return f"Invalid value: {e}."

    state.app_settings = state.preferences.update(**{name: value})
    logger.debug("Preference %s changed", name)
    return f"Saved: {name} = {getattr(state.app_settings, name)}"


async def cmd_reload(state: ConsoleState, args: list[str]) -> str:
    tasks = await state.sync.load()
    lines = _drain(state)
    if state.sync.error is None:
        lines.insert(0, f"Loaded {len(tasks)} tasks.")
    lines += await _reminder_lines(state)
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show tasks: /list [all|pending|completed] [search].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> | <weight> | <days> [| daily] [| audio].")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("undo", cmd_undo, help_text="Mark a task pending again: /undo <id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["delete"])
registry.register("progress", cmd_progress, help_text="Show daily and monthly progress.")
registry.register("trend", cmd_trend, help_text="Show this month's progress day by day.")
registry.register("settings", cmd_settings, help_text="Show or change preferences: /settings [key value].")
registry.register("reload", cmd_reload, help_text="Fetch tasks from the server again.")
registry.register("exit", lambda state, args: "Bye.", help_text="Quit the console.", aliases=["quit"])
