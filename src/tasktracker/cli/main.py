# src/tasktracker/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (loading the task file), then runs the console REPL
in the main thread. Every mutation is already flushed to disk, so shutdown only logs.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import PersistenceError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except PersistenceError as e:
        logger.critical("Cannot load tasks from %s: %s", settings.tasks_path, e)
        sys.exit(1)

    if settings.console_enabled:
        run_console_loop(state)
        logger.info("Bye.")
        return

    # Without a console there is nothing to drive the repository; wait for a signal.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    signal.signal(signal.SIGINT, _handle_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle_signal)

    logger.info("Console disabled. %d tasks loaded. Press Ctrl+C to stop.", state.tasks.count())
    stop_main.wait()
    logger.info("Bye.")


if __name__ == "__main__":
    main()
