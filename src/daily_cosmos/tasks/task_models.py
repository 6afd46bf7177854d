# src/daily_cosmos/tasks/task_models.py

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Any

_FAR_PAST = datetime.min.replace(tzinfo=UTC)


@dataclass(slots=True)
class Task:
    """
    One to-do record.

    Notes:
    - id is the reminder key and the lookup key; it never changes.
    - due_date is always timezone-aware UTC once it is inside a Task.
    - is_completed is only flipped by an explicit toggle, never by the due date passing.
    """

    id: str
    title: str
    due_date: datetime | None = None
    is_completed: bool = False


def new_task_id() -> str:
    return str(uuid.uuid4())


def to_utc(dt: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are read as host local time."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(UTC)


def clean_title(title: str | None) -> str:
    text = (title or "").strip()
    if not text:
        raise ValueError("title is required")
    return text


def new_task(title: str, due_date: datetime | None = None) -> Task:
    """Single construction path for manual and parsed tasks."""
    return Task(
        id=new_task_id(),
        title=clean_title(title),
        due_date=to_utc(due_date) if due_date is not None else None,
    )


def sort_key(task: Task) -> tuple[bool, datetime, str]:
    # Dated first (ascending), undated after, undated by case-insensitive title.
    if task.due_date is not None:
        return (False, task.due_date, "")
    return (True, _FAR_PAST, task.title.casefold())


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=sort_key)


# ---- dates ----


def encode_datetime(dt: datetime) -> str:
    """ISO-8601 in UTC with a trailing Z, e.g. 2025-11-03T17:30:00Z."""
    return to_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso_datetime(raw: Any, *, default_tz: tzinfo | None = None) -> datetime | None:
    """
    Strict ISO-8601 date-time parsing.

    Returns None for anything that is not a full date-time string (blank, date-only,
    garbage, non-string). A missing offset is read in default_tz (host local time if None).
    """
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if not s or "T" not in s.upper():
        return None
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=default_tz) if default_tz is not None else dt.astimezone()
    return dt.astimezone(UTC)


def format_due(dt: datetime | None, tz: tzinfo | None = None) -> str:
    if dt is None:
        return ""
    local = dt.astimezone(tz) if tz is not None else dt.astimezone()
    return local.strftime("%Y-%m-%d %H:%M")


# ---- persisted schema ----


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "dueDate": encode_datetime(task.due_date) if task.due_date is not None else None,
        "isCompleted": task.is_completed,
    }


def task_from_dict(data: Any) -> Task:
    """
    Decode one persisted record.

    Raises ValueError on a record that cannot be a Task (missing or blank title, missing isCompleted,
    wrong types, unreadable dueDate). A missing id is filled with a fresh one.
    """
    if not isinstance(data, dict):
        raise ValueError(f"task record must be an object, got {type(data).__name__}")

    title = data.get("title")
    if not isinstance(title, str):
        raise ValueError("task record is missing 'title'")
    if not title.strip():
        raise ValueError("task record has a blank 'title'")

    completed = data.get("isCompleted")
    if not isinstance(completed, bool):
        raise ValueError("task record is missing 'isCompleted'")

    raw_due = data.get("dueDate")
    due: datetime | None = None
    if raw_due is not None:
        due = parse_iso_datetime(raw_due, default_tz=UTC)
        if due is None:
            raise ValueError(f"task record has an invalid 'dueDate': {raw_due!r}")

    raw_id = data.get("id")
    task_id = raw_id.strip() if isinstance(raw_id, str) and raw_id.strip() else new_task_id()

    return Task(id=task_id, title=title, due_date=due, is_completed=completed)
