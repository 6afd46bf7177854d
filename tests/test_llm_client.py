# tests/test_llm_client.py

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from daily_cosmos.llm.client import OpenAICompletionClient, _message_text, friendly_llm_error_message


def _status_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    request = httpx.Request("POST", "http://localhost/chat/completions")
    response = httpx.Response(status, request=request)
    return cls("error", response=response, body=None)


def test_friendly_messages() -> None:
    assert "API key" in friendly_llm_error_message(_status_error(openai.AuthenticationError, 401))
    assert "rate-limited" in friendly_llm_error_message(_status_error(openai.RateLimitError, 429))
    assert "not available" in friendly_llm_error_message(_status_error(openai.NotFoundError, 404))
    assert friendly_llm_error_message(RuntimeError("plain")) == "plain"
    assert friendly_llm_error_message(RuntimeError()) == "RuntimeError"


def test_message_text_handles_empty_responses() -> None:
    ok = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="hi"))])
    assert _message_text(ok) == "hi"
    assert _message_text(SimpleNamespace(choices=[])) == ""
    assert _message_text(SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=None))])) == ""


def test_blank_base_url_is_rejected() -> None:
    with pytest.raises(RuntimeError):
        OpenAICompletionClient("   ")


@pytest.mark.asyncio
async def test_complete_requires_key() -> None:
    with pytest.raises(RuntimeError):
        await OpenAICompletionClient().complete("prompt", api_key=" ", model="m")
