# src/daily_cosmos/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- wires the notification center, reminder scheduler, task store and LLM client into AppState,
- loads the task document (a broken document starts the session empty, it never aborts it).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..llm.client import OpenAICompletionClient
from ..tasks.notifications import LocalNotificationCenter
from ..tasks.reminders import ReminderScheduler, ScheduleOutcome
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def restore_reminders(store: TaskStore, scheduler: ReminderScheduler) -> int:
    """
    Re-register reminders for tasks that are still due in the future.

    The in-process notification center does not outlive the process, unlike a platform
    notification center; past-due tasks, and tasks whose minute-precision trigger has
    already passed, stay without a reminder.
    """
    restored = 0
    for task in store.tasks:
        if scheduler.restore(task) == ScheduleOutcome.SCHEDULED:
            restored += 1
    if restored:
        logger.info("Restored %d pending reminders", restored)
    return restored


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    tz = settings.local_tz() if hasattr(settings, "local_tz") else None

    center = LocalNotificationCenter(grant=bool(settings.notifications_enabled))
    scheduler = ReminderScheduler(center, body=settings.reminder_body, tz=tz)
    store = TaskStore(settings.tasks_path, scheduler)

    error = store.load()
    if error is not None:
        logger.warning("Starting with an empty task list: %s", error.message)
    restore_reminders(store, scheduler)

    return AppState(
        settings=settings,
        task_store=store,
        scheduler=scheduler,
        notification_center=center,
        llm=OpenAICompletionClient(settings.llm_base_url),
        tz=tz,
    )
