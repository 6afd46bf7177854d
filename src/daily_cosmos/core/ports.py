# src/daily_cosmos/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the notification host and the LLM provider swappable and makes testing easier.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Awaitable, Protocol

if TYPE_CHECKING:
    from ..tasks.reminders import CalendarTrigger


class NotificationCenter(Protocol):
    """
    Host-side notification subsystem.

    - register() with an identifier that is already pending replaces it.
    - cancel() of an unknown identifier is a no-op.
    """

    def request_authorization(self, options: Iterable[str]) -> bool: ...

    def register(self, identifier: str, title: str, body: str, trigger: CalendarTrigger) -> None: ...

    def cancel(self, identifiers: Iterable[str]) -> None: ...


class NotificationSink(Protocol):
    """Where a fired reminder ends up (console line, desktop popup, ...)."""

    def deliver(self, *, identifier: str, title: str, body: str) -> None: ...


class CompletionClient(Protocol):
    """Single-shot text completion (OpenAI-compatible chat endpoint)."""

    def complete(self, prompt: str, *, api_key: str, model: str) -> Awaitable[str]: ...
