# tests/conftest.py

from __future__ import annotations

from datetime import UTC
from pathlib import Path
from types import SimpleNamespace

import pytest

from daily_cosmos.core.state import AppState
from daily_cosmos.tasks.notifications import LocalNotificationCenter
from daily_cosmos.tasks.reminders import ReminderScheduler
from daily_cosmos.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeCompletionClient, FakeNotificationCenter


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def center() -> FakeNotificationCenter:
    return FakeNotificationCenter()


@pytest.fixture()
def scheduler(center: FakeNotificationCenter, clock: FakeClock) -> ReminderScheduler:
    # UTC keeps calendar triggers independent of the machine running the tests.
    return ReminderScheduler(center, tz=UTC, now=clock)


@pytest.fixture()
def store(tmp_path: Path, scheduler: ReminderScheduler) -> TaskStore:
    return TaskStore(tmp_path / "Notes" / "todo.json", scheduler)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        tasks_path=tmp_path / "Notes" / "todo.json",
        gemini_api_key="test-key",
        llm_model="gemini-2.5-flash",
        llm_base_url="http://localhost",
        notifications_enabled=True,
        reminder_body="Time to complete your task!",
    )


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock) -> AppState:
    """
    AppState wired with a real store + real in-process notification center.
    Only the LLM is faked.
    """
    center = LocalNotificationCenter()
    scheduler = ReminderScheduler(center, tz=UTC, now=clock)
    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_path, scheduler),
        scheduler=scheduler,
        notification_center=center,
        llm=FakeCompletionClient(),
        tz=UTC,
    )
