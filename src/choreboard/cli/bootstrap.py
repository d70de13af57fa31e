# src/choreboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- loads and validates chore definitions (fail fast),
- wires the SQLite stores and the recurrence engine into AppState.
"""

from __future__ import annotations

import logging

from ..chores.chore_models import utc_now
from ..chores.chore_store import ChoreStore
from ..chores.definitions import load_definitions
from ..chores.engine import RecurrenceEngine
from ..config import get_settings
from ..core.ports import Clock
from ..core.state import AppState
from ..flashes.flash_store import FlashStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock = utc_now) -> AppState:
    """
    Create AppState from the provided settings.

    Raises MalformedRule / Unsatisfiable / InvalidChoreDefinition when the chore
    definitions cannot be used; callers must not start the app in that case.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    chores = load_definitions(settings.chores_path, now=clock())

    timeout = float(getattr(settings, "store_timeout_seconds", 5.0))
    chore_store = ChoreStore(settings.db_path, timeout=timeout)
    flash_store = FlashStore(settings.db_path, timeout=timeout, clock=clock)

    state = AppState(
        settings=settings,
        chores=chores,
        chore_store=chore_store,
        flash_store=flash_store,
        engine=RecurrenceEngine(chore_store, chores.values(), clock=clock),
        clock=clock,
    )
    return state
