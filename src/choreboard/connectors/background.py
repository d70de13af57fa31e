# src/choreboard/connectors/background.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..chores.chore_scheduler import run_recurrence_loop, run_sweep_loop
from ..core.state import AppState

logger = logging.getLogger(__name__)


@dataclass
class BackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            # Loop already closed.
            logger.debug("Failed to signal background stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _run_ticks(state: AppState, stop_event: asyncio.Event) -> None:
    settings = state.settings
    tasks = [
        asyncio.create_task(
            run_recurrence_loop(
                state.engine,
                interval_seconds=float(getattr(settings, "recurrence_interval_seconds", 60.0)),
                clock=state.clock,
            ),
            name="recurrence-tick",
        ),
        asyncio.create_task(
            run_sweep_loop(
                state.chore_store,
                interval_seconds=float(getattr(settings, "sweep_interval_seconds", 60.0)),
                clock=state.clock,
            ),
            name="sweep-tick",
        ),
    ]
    logger.info("Background ticks started.")

    try:
        await stop_event.wait()
    finally:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Background ticks stopped.")


def start_background(state: AppState) -> BackgroundRunner | None:
    """
    Start the recurrence and sweep ticks in a background thread.

    Why a thread:
    - console REPL is blocking (input()).
    - the ticks are asyncio loops and want their own event loop.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_ticks(state, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="choreboard-ticks", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Background thread did not initialize properly.")
        return None

    return BackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
