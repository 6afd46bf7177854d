# src/daily_cosmos/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

from ..errors import PersistenceError
from .reminders import ReminderScheduler, ScheduleOutcome
from .task_models import Task, new_task, new_task_id, sort_tasks, task_from_dict, task_to_dict

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class StoreSnapshot:
    tasks: tuple[Task, ...]
    last_error: PersistenceError | None = None


StoreListener = Callable[[StoreSnapshot], None]


class TaskStore:
    """
    JSON-file task store.

    The in-memory list is the source of truth for the running session:
    - every mutation is mirrored to one JSON document (array of task objects),
    - writes are atomic (temp file + os.replace),
    - a failed write is logged and reported but never rolls back the mutation.

    Thread-safety:
    - none; the store expects a single owner (the UI/REPL thread)
    """

    def __init__(
        self,
        path: str | Path = "todo.json",
        scheduler: ReminderScheduler | None = None,
    ) -> None:
        self._path = Path(path)
        self._scheduler = scheduler
        self._items: list[Task] = []
        self._listeners: list[StoreListener] = []
        self._last_error: PersistenceError | None = None

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.exception("Failed to create task directory %s", self._path.parent)
            self._last_error = PersistenceError("create directory", self._path.parent, str(e))

        if self._scheduler is not None:
            self._scheduler.request_authorization()

        logger.info("TaskStore ready path=%s", self._path)

    # ---- observable state ----

    @property
    def path(self) -> Path:
        return self._path

    @property
    def last_error(self) -> PersistenceError | None:
        return self._last_error

    @property
    def tasks(self) -> list[Task]:
        return [replace(t) for t in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def get(self, task_id: str) -> Task | None:
        for t in self._items:
            if t.id == task_id:
                return replace(t)
        return None

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(tasks=tuple(replace(t) for t in self._items), last_error=self._last_error)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener; it gets a snapshot after every load/mutation. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("TaskStore listener failed")

    # ---- persistence ----

    def load(self) -> PersistenceError | None:
        """
        Replace the in-memory list with the document on disk.

        Missing file -> empty list, no error.
        Unreadable/malformed document -> empty list + PersistenceError (never raised).
        """
        if not self._path.exists():
            self._items = []
            self._last_error = None
            self._notify()
            return None

        try:
            data = json.loads(self._path.read_text("utf-8"))
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            items = [task_from_dict(record) for record in data]
        except (OSError, ValueError, RecursionError) as e:
            logger.exception("Failed to load tasks from %s", self._path)
            self._items = []
            self._last_error = PersistenceError("load", self._path, str(e))
            self._notify()
            return self._last_error

        seen: set[str] = set()
        for t in items:
            if t.id in seen:
                t.id = new_task_id()
                logger.warning("Duplicate task id in %s; assigned %s", self._path, t.id)
            seen.add(t.id)

        self._items = sort_tasks(items)
        self._last_error = None
        logger.info("Loaded %d tasks from %s", len(self._items), self._path)
        self._notify()
        return None

    def save(self) -> PersistenceError | None:
        self._items = sort_tasks(self._items)
        error = self._write()
        self._last_error = error
        return error

    def _write(self) -> PersistenceError | None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps([task_to_dict(t) for t in self._items], ensure_ascii=False, indent=2)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, self._path)
        except (OSError, TypeError, ValueError) as e:
            logger.exception("Failed to save tasks to %s", self._path)
            return PersistenceError("save", self._path, str(e))

        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)
        logger.debug("Saved %d tasks to %s", len(self._items), self._path)
        return None

    # ---- public API ----

    def add(self, title: str, due_date: datetime | None = None) -> Task:
        """
        Append a new task, schedule its reminder (future due dates only), persist.

        Raises ValueError for a blank title; everything after validation is best-effort.
        """
        task = new_task(title, due_date)
        self._items.append(task)

        if self._scheduler is not None:
            outcome = self._scheduler.schedule(task)
            if outcome == ScheduleOutcome.FAILED:
                logger.warning("Task %s saved without a reminder.", task.id)

        self.save()
        logger.debug("Task added id=%s due=%s", task.id, task.due_date)
        self._notify()
        return replace(task)

    def toggle(self, task_id: str) -> bool:
        for t in self._items:
            if t.id == task_id:
                t.is_completed = not t.is_completed
                break
        else:
            return False

        self.save()
        self._notify()
        return True

    def delete(self, ids: Iterable[str]) -> int:
        """
        Remove every task whose id is in ids, as one batch:
        cancel their reminders first, drop them in a single pass, save once.
        """
        wanted = set(ids)
        matched = [t.id for t in self._items if t.id in wanted]
        if not matched:
            return 0

        if self._scheduler is not None:
            self._scheduler.cancel(matched)

        self._items = [t for t in self._items if t.id not in wanted]
        self.save()
        logger.info("Deleted %d tasks", len(matched))
        self._notify()
        return len(matched)

    def delete_at(self, positions: Iterable[int]) -> int:
        """Delete by list position (as shown by snapshot()). Out-of-range positions are ignored."""
        ids = [self._items[i].id for i in set(positions) if 0 <= i < len(self._items)]
        return self.delete(ids)
