# src/daily_cosmos/llm/client.py

from __future__ import annotations

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.5-flash"


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError)):
        return True
    return exc.__class__.__name__ in {"ConnectTimeout", "ReadTimeout", "WriteTimeout"}


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def friendly_llm_error_message(err: Exception) -> str:
    if _is_auth_error(err):
        return "Gemini rejected the API key. Check DAILY_COSMOS_GEMINI_API_KEY."
    if _is_rate_limit_error(err):
        return "Gemini is rate-limited. Try again later."
    if _is_connection_error(err):
        return "Gemini could not be reached (network/timeout)."
    if _is_not_found_error(err):
        return "Gemini model not available. Check DAILY_COSMOS_LLM_MODEL."
    msg = str(err).strip()
    return msg or err.__class__.__name__


def _message_text(response: Any) -> str:
    """First choice's text; empty when the SDK returned no content."""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class OpenAICompletionClient:
    """
    OpenAI-compatible chat completion client (Gemini, OpenRouter, ...).

    IMPORTANT:
    - the API key is passed per call; the client never reads stored credentials.
    - no automatic retries and no custom timeout (transport defaults apply).
    """

    def __init__(self, base_url: str = GEMINI_OPENAI_BASE_URL, *, extra_headers: dict[str, str] | None = None) -> None:
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set DAILY_COSMOS_LLM_BASE_URL in your .env.")
        self._base_url = base_url
        self._headers = dict(extra_headers or {})

    async def complete(self, prompt: str, *, api_key: str, model: str = DEFAULT_MODEL) -> str:
        if not api_key or not api_key.strip():
            raise RuntimeError("LLM API key is not set.")

        # One short-lived client per call: the console runs each call in a fresh event loop.
        async with AsyncOpenAI(base_url=self._base_url, api_key=api_key.strip(), max_retries=0) as client:
            logger.info("LLM: requesting completion model=%s", model)
            response = await client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                extra_headers=self._headers or None,
            )

        text = _message_text(response)
        logger.debug("LLM: completion received (%d chars)", len(text))
        return text
