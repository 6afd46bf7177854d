# src/daily_cosmos/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- The Gemini key is only read here; the core receives it as an explicit argument.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .llm.client import DEFAULT_MODEL, GEMINI_OPENAI_BASE_URL
from .tasks.reminders import DEFAULT_REMINDER_BODY

logger = logging.getLogger(__name__)

ENV_PREFIX = "DAILY_COSMOS"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_path: Path

    # ---- LLM (Gemini via its OpenAI-compatible endpoint) ----
    gemini_api_key: str | None
    llm_base_url: str
    llm_model: str

    # ---- Reminders ----
    notifications_enabled: bool
    notification_poll_seconds: float
    reminder_body: str
    timezone: str | None

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "daily-cosmos")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/daily_cosmos"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "Notes" / "todo.json")

        gemini_api_key = _first_env(_k("GEMINI_API_KEY"), "GEMINI_API_KEY", default=None)
        llm_base_url = _env(_k("LLM_BASE_URL"), GEMINI_OPENAI_BASE_URL)
        llm_model = _env(_k("LLM_MODEL"), DEFAULT_MODEL).strip() or DEFAULT_MODEL

        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)
        notification_poll_seconds = max(0.5, _env_float(_k("NOTIFICATION_POLL_SECONDS"), 5.0))
        reminder_body = _env(_k("REMINDER_BODY"), DEFAULT_REMINDER_BODY)
        timezone = (_first_env(_k("TIMEZONE"), default="") or "").strip() or None

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            gemini_api_key=gemini_api_key,
            llm_base_url=llm_base_url,
            llm_model=llm_model,
            notifications_enabled=notifications_enabled,
            notification_poll_seconds=notification_poll_seconds,
            reminder_body=reminder_body,
            timezone=timezone,
        )

    def local_tz(self) -> tzinfo | None:
        """Configured IANA zone, or None for the host's local time."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r; using host local time.", self.timezone)
            return None


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
