# src/choreboard/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (fails fast on bad chore definitions),
creates the first occurrences, then starts:
- the recurrence and sweep ticks in a background thread,
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from ..chores.errors import ChoreError, StoreUnavailable
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.background import start_background
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except ChoreError as e:
        # Bad rules or definitions: never start half-configured.
        logger.critical("Cannot start: %s", e)
        sys.exit(1)

    try:
        state.engine.tick()
    except StoreUnavailable as e:
        logger.warning("Initial recurrence tick skipped: %s", e)

    runner = start_background(state)
    if runner is None:
        logger.critical("Cannot start background ticks.")
        sys.exit(1)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    # The console REPL handles Ctrl+C itself.
    if not settings.console_enabled:
        try:
            signal.signal(signal.SIGINT, _handle_signal)
            signal.signal(signal.SIGTERM, _handle_signal)
        except (ValueError, OSError):
            # Not in the main thread, or the platform lacks the signal.
            pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Running background ticks only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
