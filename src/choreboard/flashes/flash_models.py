# src/choreboard/flashes/flash_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Flash:
    id: int
    contents: str
    created_at: datetime
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
