# src/daily_cosmos/tasks/reminders.py

from __future__ import annotations

"""
Reminder scheduler.

Maps a Task with a future due date to exactly one pending notification,
keyed by the task id:
- past-due and undated tasks never produce a reminder,
- the fire time is calendar based (minute precision, seconds dropped),
- failures of the notification host are logged and reported, never raised.

Per reminder: none -> scheduled -> fired | canceled. Nothing is re-scheduled automatically.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import StrEnum

from ..core.ports import NotificationCenter
from ..errors import SchedulingError
from .task_models import Task

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_BODY = "Time to complete your task!"
AUTHORIZATION_OPTIONS = ("alert", "sound")


class ScheduleOutcome(StrEnum):
    SCHEDULED = "scheduled"
    SKIPPED_NO_DUE_DATE = "skipped_no_due_date"
    SKIPPED_PAST_DUE = "skipped_past_due"
    SKIPPED_UNAUTHORIZED = "skipped_unauthorized"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class CalendarTrigger:
    """One-shot wall-clock fire time (year/month/day/hour/minute), never repeats."""

    year: int
    month: int
    day: int
    hour: int
    minute: int

    @classmethod
    def from_datetime(cls, dt: datetime, tz: tzinfo | None = None) -> CalendarTrigger:
        local = dt.astimezone(tz) if tz is not None else dt.astimezone()
        return cls(local.year, local.month, local.day, local.hour, local.minute)

    def fire_at(self, tz: tzinfo | None = None) -> datetime:
        naive = datetime(self.year, self.month, self.day, self.hour, self.minute)
        if tz is not None:
            return naive.replace(tzinfo=tz)
        return naive.astimezone()

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d} {self.hour:02d}:{self.minute:02d}"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ReminderScheduler:
    def __init__(
        self,
        center: NotificationCenter,
        *,
        body: str = DEFAULT_REMINDER_BODY,
        tz: tzinfo | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._center = center
        self._body = body
        self._tz = tz
        self._now = now or _utc_now
        self._authorized = False

    @property
    def authorized(self) -> bool:
        return self._authorized

    def request_authorization(self) -> bool:
        """One-time alert+sound grant. Denied or failed -> schedule() becomes a silent no-op."""
        try:
            granted = bool(self._center.request_authorization(AUTHORIZATION_OPTIONS))
        except Exception:
            logger.exception("Notification authorization failed.")
            granted = False

        self._authorized = granted
        if granted:
            logger.debug("Notification authorization granted.")
        else:
            logger.info("Notifications not authorized; reminders are disabled.")
        return granted

    def trigger_for(self, task: Task) -> CalendarTrigger | None:
        if task.due_date is None:
            return None
        return CalendarTrigger.from_datetime(task.due_date, self._tz)

    def schedule(self, task: Task) -> ScheduleOutcome:
        due = task.due_date
        if due is None:
            return ScheduleOutcome.SKIPPED_NO_DUE_DATE

        if due <= self._now():
            logger.debug("Task %s is past due; no reminder.", task.id)
            return ScheduleOutcome.SKIPPED_PAST_DUE

        if not self._authorized:
            return ScheduleOutcome.SKIPPED_UNAUTHORIZED

        trigger = self.trigger_for(task)
        try:
            self._center.register(task.id, task.title, self._body, trigger)
        except Exception:
            logger.exception("Failed to schedule reminder task_id=%s", task.id)
            return ScheduleOutcome.FAILED

        logger.info("Reminder scheduled task_id=%s at %s", task.id, trigger)
        return ScheduleOutcome.SCHEDULED

    def restore(self, task: Task) -> ScheduleOutcome:
        """
        Re-register a reminder for a task loaded from disk.

        Notes:
          - Triggers carry minute precision, so a task due later in the current minute
            would fire a trigger whose wall-clock time has already passed. Such tasks
            are treated as past due.
        """
        trigger = self.trigger_for(task)
        if trigger is None:
            return ScheduleOutcome.SKIPPED_NO_DUE_DATE

        if trigger.fire_at(self._tz) <= self._now():
            logger.debug("Task %s fires in the past (%s); not restored.", task.id, trigger)
            return ScheduleOutcome.SKIPPED_PAST_DUE

        return self.schedule(task)

    def cancel(self, ids: Iterable[str]) -> SchedulingError | None:
        identifiers = [i for i in ids if i]
        if not identifiers:
            return None
        try:
            self._center.cancel(identifiers)
        except Exception as e:
            logger.exception("Failed to cancel reminders ids=%s", identifiers)
            return SchedulingError(f"Failed to cancel reminders: {e}")

        logger.debug("Reminders cancelled ids=%s", identifiers)
        return None
