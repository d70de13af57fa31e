# src/choreboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The engine and the lifecycle operations depend on Protocols instead of the
SQLite stores. This keeps storage swappable and makes testing easier
(tests/fakes.py has an in-memory repo).
"""

from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from ..chores.chore_models import Occurrence, OccurrenceStatus
from ..flashes.flash_models import Flash

Clock = Callable[[], datetime]

# Given the latest occurrence of a chore (or None), return the occurrence to
# insert, or None to insert nothing.
SchedulePlan = Callable[[Occurrence | None], Occurrence | None]


class OccurrenceRepo(Protocol):
    def latest_occurrence(self, title: str) -> Occurrence | None: ...

    def get_occurrence(self, title: str, expected_completion_time: datetime) -> Occurrence | None: ...

    def schedule_next(self, title: str, plan: SchedulePlan) -> Occurrence | None:
        """
        Atomically: read the latest occurrence of `title`, call plan(latest),
        insert the result unless a row with the same natural key exists.

        Returns the inserted occurrence, or None if nothing was inserted.
        """
        ...

    def transition(
            self,
            title: str,
            expected_completion_time: datetime,
            *,
            expected_status: OccurrenceStatus,
            new_status: OccurrenceStatus,
    ) -> bool:
        """Compare-and-swap on status. True if this caller's write landed."""
        ...

    def list_expired_assigned(self, now: datetime) -> list[Occurrence]: ...

    def list_occurrences(self, *, since: datetime) -> list[Occurrence]: ...

    def count_occurrences(self) -> int: ...


class FlashRepo(Protocol):
    def create(self, contents: str) -> Flash: ...
    def get(self, flash_id: int) -> Flash | None: ...
    def list_active(self) -> list[Flash]: ...
    def acknowledge(self, flash_id: int) -> Flash: ...
