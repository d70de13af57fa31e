# src/choreboard/chores/chore_scheduler.py

from __future__ import annotations

"""
Periodic background ticks.

Two independent polling loops share the store with request handling:
- recurrence tick: RecurrenceEngine.tick() creates the next occurrence per chore
- sweep tick: sweep() makes expired occurrences durably "missed"

Store calls are synchronous, so cancellation can only land on the sleep between
ticks; a tick is never interrupted halfway. A failed tick is logged and simply
retried on the next interval.

To stop a loop, cancel the coroutine/task.
"""

import asyncio
import logging

from ..core.ports import Clock, OccurrenceRepo
from .chore_api import sweep
from .chore_models import utc_now
from .engine import RecurrenceEngine
from .errors import StoreUnavailable

logger = logging.getLogger(__name__)


async def run_recurrence_loop(
        engine: RecurrenceEngine,
        *,
        interval_seconds: float = 60.0,
        clock: Clock = utc_now,
) -> None:
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            engine.tick(clock())
        except StoreUnavailable as e:
            logger.warning("Recurrence tick skipped, store unavailable: %s", e)
        except Exception:
            logger.exception("Recurrence tick failed")

        await asyncio.sleep(sleep_s)


async def run_sweep_loop(
        repo: OccurrenceRepo,
        *,
        interval_seconds: float = 60.0,
        clock: Clock = utc_now,
) -> None:
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            sweep(repo, clock())
        except StoreUnavailable as e:
            logger.warning("Sweep tick skipped, store unavailable: %s", e)
        except Exception:
            logger.exception("Sweep tick failed")

        await asyncio.sleep(sleep_s)
