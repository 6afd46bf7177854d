# src/daily_cosmos/errors.py

"""
Error types shared by the core.

Core operations return these as values instead of raising them, so callers
(console, tests) can display or assert on them without capturing logs.
"""

from __future__ import annotations

from pathlib import Path


class DailyCosmosError(Exception):
    """Base class for every error the core reports."""

    @property
    def message(self) -> str:
        return str(self) or self.__class__.__name__


# ---- persistence ----


class PersistenceError(DailyCosmosError):
    def __init__(self, op: str, path: Path | str, detail: str = "") -> None:
        self.op = op
        self.path = Path(path)
        self.detail = detail
        text = f"Failed to {op} {self.path}"
        if detail:
            text = f"{text}: {detail}"
        super().__init__(text)


# ---- scheduling ----


class SchedulingError(DailyCosmosError):
    pass


# ---- ingestion ----


class IngestionError(DailyCosmosError):
    default_message = "Could not create a task from that text."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class EmptyInputError(IngestionError):
    default_message = "Type something first."


class MissingCredentialError(IngestionError):
    default_message = "Paste your Gemini API key first (set DAILY_COSMOS_GEMINI_API_KEY)."


class CompletionRequestError(IngestionError):
    default_message = "Gemini request failed."


class NoStructuredDataError(IngestionError):
    default_message = "Gemini did not return structured JSON."


class InvalidPayloadError(IngestionError):
    default_message = "Gemini returned JSON that does not describe a task."


class EmptyTitleError(IngestionError):
    default_message = "Gemini returned an empty title."
