# src/daily_cosmos/tasks/ingestion.py

"""
Natural-language task creation.

One utterance -> one completion call -> one validated Task:
- the prompt carries the local timezone and current local time, so relative
  expressions ("tomorrow at 9:30") are resolved by the model, not here,
- the reply is free-form text that contains one JSON object; only the span from
  the first "{" to the last "}" is parsed,
- a blank or unreadable dueDate degrades to "no due date",
- any failure leaves the store untouched and comes back as a displayable error.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any

from ..core.ports import CompletionClient
from ..errors import (
    CompletionRequestError,
    EmptyInputError,
    EmptyTitleError,
    IngestionError,
    InvalidPayloadError,
    MissingCredentialError,
    NoStructuredDataError,
)
from ..llm.client import DEFAULT_MODEL, friendly_llm_error_message
from .task_models import Task, parse_iso_datetime
from .task_store import TaskStore

logger = logging.getLogger(__name__)

INGEST_INSTRUCTION = """
Extract a to-do item from the input. Respond with JSON only:
{"title": "string", "dueDate": "ISO-8601 string or null"}
""".strip()


@dataclass(slots=True, frozen=True)
class ParsedTask:
    title: str
    due_date: datetime | None


@dataclass(slots=True, frozen=True)
class IngestResult:
    task: Task | None = None
    error: IngestionError | None = None

    @property
    def ok(self) -> bool:
        return self.task is not None and self.error is None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        if self.task is not None:
            return f"Added: {self.task.title}"
        return ""


def _zone_from_path(path: str) -> str | None:
    _, marker, name = os.path.realpath(path).partition("zoneinfo/")
    return name if marker and name else None


def host_zone_name() -> str | None:
    """
    IANA name of the host zone, from $TZ or the /etc/localtime link.

    Returns None when neither names a zone (POSIX rule strings, no zoneinfo link).
    """
    raw = os.environ.get("TZ", "").strip().lstrip(":")
    if raw.startswith("/"):
        return _zone_from_path(raw)
    if raw and "," not in raw:
        return raw
    return _zone_from_path("/etc/localtime")


def describe_timezone(now: datetime, zone_name: str | None = None) -> str:
    """E.g. 'America/Los_Angeles (UTC-8:00)' or 'CET (UTC+1:00)' when no zone name is known."""
    tz = now.tzinfo
    name = zone_name or getattr(tz, "key", None) or now.tzname() or "UTC"
    offset = now.utcoffset()
    seconds = int(offset.total_seconds()) if offset is not None else 0
    sign = "-" if seconds < 0 else "+"
    hours, rest = divmod(abs(seconds), 3600)
    return f"{name} (UTC{sign}{hours}:{rest // 60:02d})"


def build_prompt(text: str, *, now: datetime, tz_description: str | None = None) -> str:
    tz_line = tz_description or describe_timezone(now)
    return (
        f"{INGEST_INSTRUCTION}\n"
        f"Local timezone: {tz_line}\n"
        f"Current local time: {now.isoformat(timespec='seconds')}\n"
        f"Input: {text}"
    )


def extract_json_object(raw: str) -> str | None:
    first = raw.find("{")
    last = raw.rfind("}")
    if first == -1 or last == -1 or last < first:
        return None
    return raw[first : last + 1]


def parse_payload(raw: str, *, tz: tzinfo | None = None) -> ParsedTask:
    """
    Validate the model reply.

    Raises:
    - NoStructuredDataError: no {...} span in the reply
    - InvalidPayloadError: the span is not a JSON object with a string title
    - EmptyTitleError: title is blank after trimming
    """
    blob = extract_json_object(raw or "")
    if blob is None:
        raise NoStructuredDataError()

    try:
        data: Any = json.loads(blob)
    except json.JSONDecodeError as e:
        raise InvalidPayloadError(f"Gemini returned malformed JSON: {e.msg}.") from e

    if not isinstance(data, dict) or not isinstance(data.get("title"), str):
        raise InvalidPayloadError()

    title = data["title"].strip()
    if not title:
        raise EmptyTitleError()

    raw_due = data.get("dueDate")
    due = parse_iso_datetime(raw_due, default_tz=tz)
    if due is None and isinstance(raw_due, str) and raw_due.strip():
        logger.info("Ignoring unparseable dueDate %r", raw_due)

    return ParsedTask(title=title, due_date=due)


async def ingest_text(
    store: TaskStore,
    client: CompletionClient,
    text: str,
    *,
    api_key: str | None,
    model: str = DEFAULT_MODEL,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> IngestResult:
    """
    Turn one utterance into a Task via the completion endpoint.

    The caller owns the credential and must not submit again while a call is in flight;
    concurrent calls would each add their own task.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return IngestResult(error=EmptyInputError())

    if not api_key or not api_key.strip():
        return IngestResult(error=MissingCredentialError())

    local_now = now or datetime.now(tz).astimezone(tz)
    tz_description = None
    if now is None and tz is None:
        # datetime.astimezone() names the host zone by abbreviation only.
        tz_description = describe_timezone(local_now, host_zone_name())
    prompt = build_prompt(trimmed, now=local_now, tz_description=tz_description)

    try:
        reply = await client.complete(prompt, api_key=api_key, model=model)
    except Exception as e:
        logger.exception("Completion request failed")
        return IngestResult(error=CompletionRequestError(f"Gemini request failed: {friendly_llm_error_message(e)}"))

    try:
        parsed = parse_payload(reply, tz=local_now.tzinfo)
    except IngestionError as e:
        logger.info("Rejected model reply: %s", e.message)
        return IngestResult(error=e)

    task = store.add(parsed.title, parsed.due_date)
    logger.info("Ingested task id=%s", task.id)
    return IngestResult(task=task)
