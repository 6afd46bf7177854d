# tests/test_ingestion.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import httpx
import openai
import pytest

from daily_cosmos.errors import (
    CompletionRequestError,
    EmptyInputError,
    EmptyTitleError,
    InvalidPayloadError,
    MissingCredentialError,
    NoStructuredDataError,
)
from daily_cosmos.tasks.ingestion import (
    build_prompt,
    describe_timezone,
    extract_json_object,
    host_zone_name,
    ingest_text,
    parse_payload,
)
from daily_cosmos.tasks.task_store import TaskStore

from .fakes import FakeCompletionClient

PST = timezone(timedelta(hours=-8), "PST")
NOW = datetime(2025, 11, 2, 20, 15, 42, tzinfo=PST)


async def _ingest(store: TaskStore, client: FakeCompletionClient, text: str, api_key: str | None = "k"):
    return await ingest_text(store, client, text, api_key=api_key, model="gemini-2.5-flash", now=NOW)


@pytest.mark.asyncio
async def test_reply_with_prose_around_json(store: TaskStore, center) -> None:
    client = FakeCompletionClient(
        'Sure! {"title":"Move trash","dueDate":"2025-11-03T09:30:00-08:00"} Hope that helps.'
    )

    result = await _ingest(store, client, "Move trash tomorrow at 9:30")

    assert result.ok
    assert result.task is not None
    assert result.task.title == "Move trash"
    assert result.task.due_date == datetime(2025, 11, 3, 17, 30, tzinfo=UTC)
    assert [t.id for t in store.tasks] == [result.task.id]
    assert result.task.id in center.registered
    assert store.path.exists()
    assert result.message == "Added: Move trash"


@pytest.mark.asyncio
async def test_prompt_carries_time_zone_and_input(store: TaskStore) -> None:
    client = FakeCompletionClient('{"title":"x","dueDate":null}')

    await _ingest(store, client, "  Move trash tomorrow at 9:30  ")

    (prompt, api_key, model) = client.calls[0]
    assert '{"title": "string", "dueDate": "ISO-8601 string or null"}' in prompt
    assert "Local timezone: PST (UTC-8:00)" in prompt
    assert "Current local time: 2025-11-02T20:15:42-08:00" in prompt
    assert prompt.endswith("Input: Move trash tomorrow at 9:30")
    assert api_key == "k"
    assert model == "gemini-2.5-flash"


@pytest.mark.asyncio
async def test_no_braces_is_no_structured_data(store: TaskStore) -> None:
    client = FakeCompletionClient("I could not find a task in that.")

    result = await _ingest(store, client, "hmm")

    assert not result.ok
    assert isinstance(result.error, NoStructuredDataError)
    assert len(store) == 0


@pytest.mark.asyncio
async def test_blank_title_is_empty_title(store: TaskStore) -> None:
    client = FakeCompletionClient('{"title":"   ","dueDate":null}')

    result = await _ingest(store, client, "something")

    assert isinstance(result.error, EmptyTitleError)
    assert result.message == "Gemini returned an empty title."
    assert len(store) == 0


@pytest.mark.asyncio
async def test_empty_input_and_missing_key_make_no_call(store: TaskStore) -> None:
    client = FakeCompletionClient('{"title":"x"}')

    r1 = await _ingest(store, client, "   ")
    r2 = await _ingest(store, client, "buy milk", api_key="")
    r3 = await _ingest(store, client, "buy milk", api_key=None)

    assert isinstance(r1.error, EmptyInputError)
    assert isinstance(r2.error, MissingCredentialError)
    assert isinstance(r3.error, MissingCredentialError)
    assert client.calls == []
    assert len(store) == 0


@pytest.mark.asyncio
async def test_transport_failure_is_reported(store: TaskStore) -> None:
    client = FakeCompletionClient(error=ConnectionError("boom"))

    result = await _ingest(store, client, "buy milk")

    assert isinstance(result.error, CompletionRequestError)
    assert result.message.startswith("Gemini request failed:")
    assert len(store) == 0


@pytest.mark.asyncio
async def test_sdk_connection_error_gets_friendly_text(store: TaskStore) -> None:
    client = FakeCompletionClient(error=openai.APIConnectionError(request=httpx.Request("POST", "http://localhost")))

    result = await _ingest(store, client, "buy milk")

    assert isinstance(result.error, CompletionRequestError)
    assert "could not be reached" in result.message


@pytest.mark.asyncio
async def test_unreadable_due_date_degrades_to_none(store: TaskStore, center) -> None:
    client = FakeCompletionClient('{"title":"Dentist","dueDate":"next tuesday-ish"}')

    result = await _ingest(store, client, "dentist sometime")

    assert result.ok
    assert result.task.due_date is None
    assert center.registered == {}


@pytest.mark.parametrize(
    "reply",
    ['{"title": "x", ', '{"title": 42}', '{"dueDate": null}', "{[1, 2]}"],
)
def test_invalid_payloads(reply: str) -> None:
    with pytest.raises((InvalidPayloadError, NoStructuredDataError)):
        parse_payload(reply)


def test_malformed_json_between_braces_is_invalid_payload() -> None:
    with pytest.raises(InvalidPayloadError):
        parse_payload('{"title": "x",}')


@pytest.mark.parametrize(
    ("due", "expected"),
    [
        ('"2025-11-03T09:30:00+01:00"', datetime(2025, 11, 3, 8, 30, tzinfo=UTC)),
        ('"2025-11-03T09:30:00Z"', datetime(2025, 11, 3, 9, 30, tzinfo=UTC)),
        ('"2025-11-03T09:30:00"', datetime(2025, 11, 3, 17, 30, tzinfo=UTC)),
        ('"2025-11-03"', None),
        ('"  "', None),
        ("null", None),
        ("1762162200", None),
    ],
)
def test_due_date_parsing(due: str, expected: datetime | None) -> None:
    parsed = parse_payload(f'{{"title":"a","dueDate":{due}}}', tz=PST)
    assert parsed.title == "a"
    assert parsed.due_date == expected


def test_extract_json_object_spans_first_to_last_brace() -> None:
    assert extract_json_object('a {"x": {"y": 1}} b') == '{"x": {"y": 1}}'
    assert extract_json_object("no json") is None
    assert extract_json_object("} backwards {") is None


def test_describe_timezone_formats_offset() -> None:
    assert describe_timezone(NOW) == "PST (UTC-8:00)"
    ist = timezone(timedelta(hours=5, minutes=30), "IST")
    assert describe_timezone(datetime(2025, 1, 1, tzinfo=ist)) == "IST (UTC+5:30)"


def test_build_prompt_accepts_explicit_zone_line() -> None:
    prompt = build_prompt("x", now=NOW, tz_description="America/Los_Angeles (UTC-8:00)")
    assert "Local timezone: America/Los_Angeles (UTC-8:00)" in prompt


def test_describe_timezone_prefers_zone_name() -> None:
    assert describe_timezone(NOW, "America/Los_Angeles") == "America/Los_Angeles (UTC-8:00)"


@pytest.mark.parametrize(
    ("tz_env", "expected"),
    [
        ("Europe/Berlin", "Europe/Berlin"),
        (":Asia/Tokyo", "Asia/Tokyo"),
    ],
)
def test_host_zone_name_reads_tz_variable(monkeypatch, tz_env: str, expected: str) -> None:
    monkeypatch.setenv("TZ", tz_env)
    assert host_zone_name() == expected


@pytest.mark.asyncio
async def test_prompt_names_host_zone_when_reading_host_clock(store: TaskStore, monkeypatch) -> None:
    monkeypatch.setenv("TZ", "Europe/Berlin")
    client = FakeCompletionClient('{"title":"x","dueDate":null}')

    await ingest_text(store, client, "call mom", api_key="k")

    (prompt, _, _) = client.calls[0]
    assert "Local timezone: Europe/Berlin (UTC" in prompt
