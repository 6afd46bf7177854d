# src/daily_cosmos/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.state import AppState
from ..tasks.task_models import Task, format_due, parse_iso_datetime

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
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

    def handle(
        self,
        state: AppState,
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
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Anything else is sent to Gemini and turned into a task.")
        return "\n".join(lines)


registry = CommandRegistry()


def format_task_line(index: int, task: Task, state: AppState) -> str:
    mark = "x" if task.is_completed else " "
    due = format_due(task.due_date, state.tz)
    suffix = f"  (due {due})" if due else ""
    return f"{index}. [{mark}] {task.title}{suffix}"


def _parse_positions(state: AppState, args: list[str]) -> list[int] | None:
    positions: list[int] = []
    for a in args:
        try:
            n = int(a)
        except ValueError:
            return None
        if n < 1 or n > len(state.task_store):
            return None
        positions.append(n - 1)
    return positions


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.snapshot().tasks
    if not tasks:
        return "No tasks. Add a task to get started."
    lines = ["To-Do List:"]
    for i, task in enumerate(tasks, start=1):
        lines.append(format_task_line(i, task, state))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <title>                     -> task without a due date
    /add <title> @ <ISO date-time>   -> task with a reminder, e.g. /add Pay rent @ 2025-12-01T09:00
    """
    text = " ".join(args)
    head, sep, when = f" {text} ".rpartition(" @ ")
    title = head.strip() if sep else text
    due = None
    if sep:
        due = parse_iso_datetime(when, default_tz=state.tz)
        if due is None:
            return f"Cannot read due date {when.strip()!r}. Use ISO format, e.g. 2025-12-01T09:00."

    if not title.strip():
        return "Usage: /add <title> [@ <ISO date-time>]"

    task = state.task_store.add(title, due)
    logger.debug("Manual add task_id=%s due=%s", task.id, task.due_date)
    reply = f"Added: {task.title}"
    if task.due_date is not None:
        reply += f" (due {format_due(task.due_date, state.tz)})"

    error = state.task_store.last_error
    if error is not None and emit is not None:
        emit(f"[WARN] {error.message}")
    return reply


def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <n> -> toggle completion of task n (as numbered by /list)"""
    positions = _parse_positions(state, args[:1]) if args else None
    if not positions:
        return "Usage: /done <n> (see /list for numbers)."
    task = state.task_store.snapshot().tasks[positions[0]]
    state.task_store.toggle(task.id)
    now_done = not task.is_completed
    return f"{'Completed' if now_done else 'Reopened'}: {task.title}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    """/rm <n> [n ...] -> delete tasks (and their pending reminders)"""
    positions = _parse_positions(state, args) if args else None
    if not positions:
        return "Usage: /rm <n> [n ...] (see /list for numbers)."
    removed = state.task_store.delete_at(positions)
    return f"Deleted {removed} task(s)."


def cmd_reminders(state: AppState, args: list[str]) -> str:
    pending = state.notification_center.pending()
    if not pending:
        return "No pending reminders."
    lines = ["Pending reminders:"]
    for n in pending:
        lines.append(f"  {n.trigger}  {n.title}")
    return "\n".join(lines)


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    key = "set" if getattr(settings, "gemini_api_key", None) else "missing"
    notif = "ON" if state.scheduler.authorized else "OFF"
    error = state.task_store.last_error
    storage = f"ERROR ({error.message})" if error is not None else "OK"
    return (
        "Status:\n"
        f"  Tasks file: {state.task_store.path} [{storage}]\n"
        f"  Tasks: {len(state.task_store)}\n"
        f"  Reminders: {notif}\n"
        f"  Gemini key: {key}, model: {getattr(settings, 'llm_model', '?')}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the to-do list.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [@ <ISO date-time>].")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.")
registry.register("rm", cmd_rm, help_text="Delete tasks: /rm <n> [n ...].", aliases=["del"])
registry.register("reminders", cmd_reminders, help_text="Show pending reminders.")
registry.register("status", cmd_status, help_text="Show storage/reminder/LLM status.")

