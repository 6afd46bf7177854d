# src/daily_cosmos/tasks/notifications.py

from __future__ import annotations

"""
In-process notification host.

Plays the role of the platform notification subsystem on a desktop/console host:
- LocalNotificationCenter keeps pending one-shot registrations keyed by identifier,
- run_notification_loop() polls for due registrations and hands them to a sink,
- start_notifications_in_background() runs that loop next to the blocking console REPL.

A popped registration is gone (fired is terminal), whether or not the sink succeeded.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, tzinfo

from ..core.ports import NotificationSink
from .reminders import CalendarTrigger

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PendingNotification:
    identifier: str
    title: str
    body: str
    trigger: CalendarTrigger


class LocalNotificationCenter:
    """
    Thread-safety:
    - the REPL thread registers/cancels, the delivery thread pops; all access goes through one lock
    """

    def __init__(self, *, grant: bool = True) -> None:
        self._grant = grant
        self._pending: dict[str, PendingNotification] = {}
        self._lock = threading.Lock()

    def request_authorization(self, options: Iterable[str]) -> bool:
        logger.debug("Authorization requested options=%s granted=%s", list(options), self._grant)
        return self._grant

    def register(self, identifier: str, title: str, body: str, trigger: CalendarTrigger) -> None:
        if not identifier:
            raise ValueError("identifier is required")
        item = PendingNotification(identifier=identifier, title=title, body=body, trigger=trigger)
        with self._lock:
            replaced = identifier in self._pending
            self._pending[identifier] = item
        logger.debug("Notification registered id=%s at=%s replaced=%s", identifier, trigger, replaced)

    def cancel(self, identifiers: Iterable[str]) -> None:
        with self._lock:
            for identifier in identifiers:
                self._pending.pop(identifier, None)

    def pending(self) -> list[PendingNotification]:
        with self._lock:
            items = list(self._pending.values())
        return sorted(items, key=lambda n: str(n.trigger))

    def pop_due(self, now: datetime, tz: tzinfo | None = None) -> list[PendingNotification]:
        with self._lock:
            due = [n for n in self._pending.values() if n.trigger.fire_at(tz) <= now]
            for n in due:
                del self._pending[n.identifier]
        return due


class ConsoleSink:
    """Prints fired reminders on their own line."""

    def __init__(self, emit: Callable[[str], None] = print) -> None:
        self._emit = emit

    def deliver(self, *, identifier: str, title: str, body: str) -> None:
        self._emit(f"[REMINDER] {title} - {body}")


def deliver_due(
    center: LocalNotificationCenter,
    sink: NotificationSink,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> int:
    """Fire every due registration once. Returns how many were popped."""
    now_dt = now or datetime.now().astimezone()
    due = center.pop_due(now_dt, tz)
    for n in due:
        try:
            sink.deliver(identifier=n.identifier, title=n.title, body=n.body)
            logger.info("Reminder fired id=%s", n.identifier)
        except Exception:
            logger.exception("Reminder delivery failed id=%s", n.identifier)
    return len(due)


async def run_notification_loop(
    center: LocalNotificationCenter,
    sink: NotificationSink,
    *,
    interval_seconds: float = 5.0,
    tz: tzinfo | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds: pop due registrations and deliver them.
    To stop it, set stop_event or cancel the coroutine.
    """
    sleep_s = max(0.05, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        try:
            deliver_due(center, sink, tz=tz)
        except Exception:
            logger.exception("Notification poll failed")

        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue

        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)


@dataclass(slots=True)
class NotificationRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal notification loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_notifications_in_background(
    center: LocalNotificationCenter,
    sink: NotificationSink,
    *,
    interval_seconds: float = 5.0,
    tz: tzinfo | None = None,
) -> NotificationRunner | None:
    """
    Run the delivery loop on its own event loop in a daemon thread,
    so the blocking console REPL keeps the main thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_notification_loop(
                    center,
                    sink,
                    interval_seconds=interval_seconds,
                    tz=tz,
                    stop_event=stop_event,
                )
            )
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="notifications", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Notification thread did not initialize properly.")
        return None

    logger.info("Notification thread started (interval=%.1fs).", interval_seconds)
    return NotificationRunner(thread=t, loop=loop, stop_event=stop_event)
