# src/daily_cosmos/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the reminder delivery loop in a background thread,
- the console REPL in the main thread.
"""

from __future__ import annotations

import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.notifications import ConsoleSink, start_notifications_in_background

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(
        log_dir=settings.data_dir,
        console_level=getattr(settings, "log_level", "INFO"),
    )
    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)

    state = create_initial_state(settings=settings)

    runner = start_notifications_in_background(
        state.notification_center,
        ConsoleSink(),
        interval_seconds=settings.notification_poll_seconds,
        tz=state.tz,
    )

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    # Some platforms do not support SIGTERM.
    with contextlib.suppress(ValueError, OSError, AttributeError):
        signal.signal(signal.SIGTERM, _handle_signal)

    try:
        run_console_loop(state)
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
