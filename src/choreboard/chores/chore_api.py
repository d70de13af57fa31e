# src/choreboard/chores/chore_api.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta

from ..core.ports import OccurrenceRepo
from .chore_models import ChoreDefinition, Occurrence, OccurrenceStatus, OccurrenceView
from .errors import Conflict, NotFound
from .status import build_view

logger = logging.getLogger(__name__)


def complete(repo: OccurrenceRepo, title: str, expected_completion_time: datetime) -> Occurrence:
    """
    Mark one occurrence completed.

    A single conditional write (assigned -> completed). When it does not land,
    the row is re-read only to tell NotFound from Conflict; nothing else changes.
    """
    landed = repo.transition(
        title,
        expected_completion_time,
        expected_status=OccurrenceStatus.ASSIGNED,
        new_status=OccurrenceStatus.COMPLETED,
    )

    current = repo.get_occurrence(title, expected_completion_time)
    if current is None:
        raise NotFound(
            f"No occurrence of {title!r} at {expected_completion_time.isoformat()}"
        )
    if not landed:
        raise Conflict(title, expected_completion_time, current.status.value)

    logger.info(
        "Occurrence completed title=%s expected=%s", title, expected_completion_time.isoformat()
    )
    return current


def sweep(repo: OccurrenceRepo, now: datetime) -> int:
    """
    Durably mark expired, still-assigned occurrences as missed.

    Each row goes through the same compare-and-swap as completion. A row that
    was completed (or swept) between the scan and the write is a lost race and
    is skipped. Returns the number of rows this call transitioned.
    """
    transitioned = 0
    for occ in repo.list_expired_assigned(now):
        landed = repo.transition(
            occ.title,
            occ.expected_completion_time,
            expected_status=OccurrenceStatus.ASSIGNED,
            new_status=OccurrenceStatus.MISSED,
        )
        if landed:
            transitioned += 1
            logger.info(
                "Occurrence missed title=%s expected=%s",
                occ.title,
                occ.expected_completion_time.isoformat(),
            )
        else:
            logger.debug(
                "Sweep lost race title=%s expected=%s",
                occ.title,
                occ.expected_completion_time.isoformat(),
            )

    if transitioned:
        logger.info("Sweep marked %d occurrence(s) missed", transitioned)
    return transitioned


def list_occurrences(
    repo: OccurrenceRepo,
    chores: Mapping[str, ChoreDefinition],
    now: datetime,
    *,
    lookback_days: int = 0,
) -> list[OccurrenceView]:
    """
    Occurrences for display: everything expected within the lookback window
    (from `now - lookback_days`) plus any still-open occurrence, with the
    effective status resolved against `now`.
    """
    since = now - timedelta(days=max(0, int(lookback_days)))

    views: list[OccurrenceView] = []
    for occ in repo.list_occurrences(since=since):
        chore = chores.get(occ.title)
        if chore is None:
            logger.warning("Chore %r not found in definitions; skipping", occ.title)
            continue
        views.append(build_view(occ, chore.description, now))
    return views
