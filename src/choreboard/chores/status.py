# src/choreboard/chores/status.py

from __future__ import annotations

"""
Read-side status resolution.

    assigned -> overdue -> missed      (time-driven, derived here)
    assigned | overdue -> completed    (user-driven, stored)

Stored terminal states are authoritative. Nothing in this module writes:
sweep() is what makes "missed" durable.
"""

from datetime import datetime

from .chore_models import EffectiveStatus, Occurrence, OccurrenceStatus, OccurrenceView


def resolve_status(
    status: OccurrenceStatus,
    overdue_time: datetime,
    expiration_time: datetime | None,
    now: datetime,
) -> EffectiveStatus:
    if status == OccurrenceStatus.COMPLETED:
        return EffectiveStatus.COMPLETED
    if status == OccurrenceStatus.MISSED:
        return EffectiveStatus.MISSED

    # Without an expiration the occurrence stays overdue until completed.
    if expiration_time is not None and now >= expiration_time:
        return EffectiveStatus.MISSED
    if now >= overdue_time:
        return EffectiveStatus.OVERDUE
    return EffectiveStatus.ASSIGNED


def resolve_occurrence(occurrence: Occurrence, now: datetime) -> EffectiveStatus:
    return resolve_status(
        occurrence.status, occurrence.overdue_time, occurrence.expiration_time, now
    )


def build_view(occurrence: Occurrence, description: str, now: datetime) -> OccurrenceView:
    effective = resolve_occurrence(occurrence, now)
    return OccurrenceView(
        title=occurrence.title,
        description=description,
        expected_completion_time=occurrence.expected_completion_time,
        status=effective,
        overdue=effective is EffectiveStatus.OVERDUE,
        upcoming=(not occurrence.status.is_terminal and now < occurrence.expected_completion_time),
    )
