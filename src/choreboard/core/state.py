# src/choreboard/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..chores.chore_models import ChoreDefinition, utc_now
from ..chores.engine import RecurrenceEngine
from .ports import Clock, FlashRepo, OccurrenceRepo


@dataclass
class AppState:
    # Settings are stored on the state for easy access in other modules.
    settings: Any

    chores: dict[str, ChoreDefinition]
    chore_store: OccurrenceRepo
    flash_store: FlashRepo
    engine: RecurrenceEngine

    clock: Clock = utc_now
    # Serializes console commands; the stores themselves need no lock.
    lock: threading.Lock = field(default_factory=threading.Lock)
