# src/daily_cosmos/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.ingestion import IngestResult, ingest_text

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def ingest_line(state: AppState, text: str) -> IngestResult:
    """
    Run one natural-language ingestion to completion.

    The REPL blocks while the call is in flight, so at most one ingestion runs at a time.
    """
    settings = state.settings
    return asyncio.run(
        ingest_text(
            state.task_store,
            state.llm,
            text,
            api_key=getattr(settings, "gemini_api_key", None),
            model=getattr(settings, "llm_model", "gemini-2.5-flash"),
            tz=state.tz,
        )
    )


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tasks=%d).", len(state.task_store))
    _print_ts("[CONSOLE] Type a task in plain words, or use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = command_registry.handle(state, user_input, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)
            continue

        _print_ts("[AI] Thinking...")
        try:
            result = ingest_line(state, user_input)
        except Exception:
            logger.exception("Console ingestion crashed.")
            _print_ts("Internal error while creating the task.")
            continue

        if result.ok:
            _print_ts(result.message)
        else:
            _print_ts(f"[AI] {result.message}")

    logger.info("Console connector finished.")
