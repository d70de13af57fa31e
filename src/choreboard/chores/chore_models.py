# src/choreboard/chores/chore_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from .recurrence import RecurrenceRule


class OccurrenceStatus(StrEnum):
    """
    Persisted occurrence status.

    Only these three values are ever stored. "overdue" is derived at read time
    (see status.resolve_status) and never written.
    """

    ASSIGNED = "assigned"
    COMPLETED = "completed"
    MISSED = "missed"

    @property
    def is_terminal(self) -> bool:
        return self is not OccurrenceStatus.ASSIGNED

    @classmethod
    def from_db(cls, raw: str) -> OccurrenceStatus:
        # The CHECK constraint guarantees one of the three values.
        return cls(raw)


class EffectiveStatus(StrEnum):
    ASSIGNED = "assigned"
    OVERDUE = "overdue"
    MISSED = "missed"
    COMPLETED = "completed"


def utc_now() -> datetime:
    # Storage keeps whole seconds; keep in-memory times comparable with stored ones.
    return datetime.now(UTC).replace(microsecond=0)


def to_epoch(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return int(ts.timestamp())


def from_epoch(raw: int | float) -> datetime:
    return datetime.fromtimestamp(int(raw), tz=UTC)


@dataclass(frozen=True, slots=True)
class ChoreDefinition:
    title: str
    description: str
    rule: RecurrenceRule
    overdue_offset: timedelta
    # None: expire when the rule's next instant after the occurrence arrives.
    expiration_offset: timedelta | None = None

    def build_occurrence(self, expected: datetime, *, created_at: datetime) -> Occurrence:
        """Derive the grace-period boundaries for one scheduled instant."""
        overdue_time = expected + self.overdue_offset
        if self.expiration_offset is not None:
            expiration_time = expected + self.expiration_offset
        else:
            expiration_time = max(self.rule.next_after(expected), overdue_time)

        return Occurrence(
            title=self.title,
            expected_completion_time=expected,
            status=OccurrenceStatus.ASSIGNED,
            created_at=created_at,
            overdue_time=overdue_time,
            expiration_time=expiration_time,
        )


@dataclass(frozen=True, slots=True)
class Occurrence:
    title: str
    expected_completion_time: datetime
    status: OccurrenceStatus
    created_at: datetime
    overdue_time: datetime
    expiration_time: datetime

    def __post_init__(self) -> None:
        if self.overdue_time <= self.expected_completion_time:
            raise ValueError("overdue_time must be after expected_completion_time")
        if self.expiration_time < self.overdue_time:
            raise ValueError("expiration_time must not be before overdue_time")

    @property
    def key(self) -> tuple[str, datetime]:
        return (self.title, self.expected_completion_time)


@dataclass(frozen=True, slots=True)
class OccurrenceView:
    """What a client sees for one occurrence at a given `now`."""

    title: str
    description: str
    expected_completion_time: datetime
    status: EffectiveStatus
    overdue: bool
    upcoming: bool
