# src/daily_cosmos/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Any

from ..tasks.notifications import LocalNotificationCenter
from ..tasks.reminders import ReminderScheduler
from ..tasks.task_store import TaskStore
from .ports import CompletionClient


@dataclass
class AppState:
    # Settings are kept on the state so commands can read them without globals.
    settings: Any

    task_store: TaskStore
    scheduler: ReminderScheduler
    notification_center: LocalNotificationCenter
    llm: CompletionClient

    tz: tzinfo | None = None
