# src/daily_cosmos/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

LOG_FILE_NAME = "daily_cosmos.log"

# Loggers that run off the prompt thread; they only reach the console at WARNING+.
BACKGROUND_LOGGERS = ("daily_cosmos.tasks.notifications",)

# LLM transport stack; request lines and retries stay out of the log file too.
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """"debug" / "INFO" / ... -> logging level; unknown names give the default."""
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


class _PromptFriendlyFilter(logging.Filter):
    """
    Console filter for the REPL:
    - daily_cosmos records pass, except background loggers below WARNING
      (reminder polling would interleave with the prompt)
    - everything else (py.warnings, openai, httpx, ...) only at ERROR+
    """

    def __init__(self, background: Iterable[str] = BACKGROUND_LOGGERS) -> None:
        super().__init__()
        self._background = tuple(background)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "daily_cosmos" or name.startswith("daily_cosmos."):
            if name.startswith(self._background):
                return record.levelno >= logging.WARNING
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/daily_cosmos",
    console_level: int | str = logging.INFO,
    file_level: int = logging.DEBUG,
    quiet: Iterable[str] = QUIET_LOGGERS,
) -> Path:
    """
    Configure logging with:
    - Console handler (stderr): filtered so the prompt stays readable
    - File handler: <log_dir>/daily_cosmos.log, everything from file_level up

    Call this ONCE, before the first logger.info. Returns the log file path.
    """
    if isinstance(console_level, str):
        console_level = level_from_name(console_level)

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_PromptFriendlyFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
