# tests/fakes.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from daily_cosmos.tasks.reminders import CalendarTrigger


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 11, 2, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeCompletionClient:
    """
    Deterministic completion client for unit tests.

    - Captures calls for assertions
    - Returns a predefined reply, or raises a predefined error
    """

    def __init__(self, reply: str = "{}", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def complete(self, prompt: str, *, api_key: str, model: str) -> str:
        self.calls.append((prompt, api_key, model))
        if self.error is not None:
            raise self.error
        return self.reply


@dataclass(slots=True)
class Registration:
    identifier: str
    title: str
    body: str
    trigger: CalendarTrigger


@dataclass
class FakeNotificationCenter:
    """
    Records every call in order, so tests can assert on call sequences
    (e.g. cancel happens before the task leaves the store).
    """

    grant: bool = True
    fail_register: bool = False
    fail_cancel: bool = False
    registered: dict[str, Registration] = field(default_factory=dict)
    events: list[tuple[str, object]] = field(default_factory=list)

    def request_authorization(self, options: Iterable[str]) -> bool:
        self.events.append(("authorize", tuple(options)))
        return self.grant

    def register(self, identifier: str, title: str, body: str, trigger: CalendarTrigger) -> None:
        if self.fail_register:
            raise RuntimeError("notification host unavailable")
        self.events.append(("register", identifier))
        self.registered[identifier] = Registration(identifier, title, body, trigger)

    def cancel(self, identifiers: Iterable[str]) -> None:
        ids = list(identifiers)
        if self.fail_cancel:
            raise RuntimeError("notification host unavailable")
        self.events.append(("cancel", ids))
        for i in ids:
            self.registered.pop(i, None)


@dataclass(slots=True)
class Delivered:
    identifier: str
    title: str
    body: str


@dataclass
class FakeSink:
    delivered: list[Delivered] = field(default_factory=list)
    fail: bool = False

    def deliver(self, *, identifier: str, title: str, body: str) -> None:
        if self.fail:
            raise RuntimeError("sink broken")
        self.delivered.append(Delivered(identifier, title, body))
