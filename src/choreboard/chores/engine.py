# src/choreboard/chores/engine.py

from __future__ import annotations

"""
Recurrence engine.

Keeps exactly one open occurrence per chore: a new occurrence is created only
when the chore has none yet, or when its latest one is terminal
(completed/missed). The read-decide-insert step runs inside the repo's
schedule_next() transaction, and the insert is conditional on the natural key,
so overlapping ticks cannot produce a second assigned row.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from ..core.ports import Clock, OccurrenceRepo
from .chore_models import ChoreDefinition, Occurrence, utc_now
from .errors import ChoreError, StoreUnavailable

logger = logging.getLogger(__name__)


def plan_next_occurrence(
    chore: ChoreDefinition,
    latest: Occurrence | None,
    now: datetime,
) -> Occurrence | None:
    """
    Decide which occurrence (if any) should exist next for `chore`.

    Pure: no storage access. Returns None while the latest occurrence is still
    stored as assigned.
    """
    if latest is not None and not latest.status.is_terminal:
        return None

    reference = now if latest is None else max(latest.expected_completion_time, now)
    candidate = chore.rule.next_after(reference)
    return chore.build_occurrence(candidate, created_at=now)


class RecurrenceEngine:
    def __init__(
        self,
        repo: OccurrenceRepo,
        chores: Iterable[ChoreDefinition],
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._repo = repo
        self._chores = list(chores)
        self._clock = clock

    @property
    def chores(self) -> list[ChoreDefinition]:
        return list(self._chores)

    def ensure_next(self, chore: ChoreDefinition, now: datetime | None = None) -> Occurrence | None:
        """
        Create the next occurrence for one chore if its previous one is resolved.

        Returns the created occurrence, or None when nothing had to be created
        (open occurrence exists, or a concurrent tick inserted it first).
        """
        if now is None:
            now = self._clock()

        created = self._repo.schedule_next(
            chore.title, lambda latest: plan_next_occurrence(chore, latest, now)
        )
        if created is not None:
            logger.info(
                "Occurrence created title=%s expected=%s overdue=%s expires=%s",
                created.title,
                created.expected_completion_time.isoformat(),
                created.overdue_time.isoformat(),
                created.expiration_time.isoformat(),
            )
        return created

    def tick(self, now: datetime | None = None) -> int:
        """
        Run ensure_next for every chore. Returns the number of occurrences created.

        StoreUnavailable aborts the whole tick (the next scheduled tick retries);
        any other ChoreError only skips the affected chore.
        """
        if now is None:
            now = self._clock()

        created = 0
        for chore in self._chores:
            try:
                if self.ensure_next(chore, now) is not None:
                    created += 1
            except StoreUnavailable:
                raise
            except ChoreError:
                logger.exception("Recurrence failed for chore %s", chore.title)

        logger.debug("Recurrence tick done: created %d occurrence(s)", created)
        return created
