# src/choreboard/chores/recurrence.py

"""
Cron-style recurrence rules.

A rule is parsed once (at startup) and then evaluated as a pure function of
(rule, reference time). Nothing here holds scheduling state between calls.

Supported syntax (5 fields): minute hour day-of-month month day-of-week.
Each field: "*", "N", "A-B", "*/S", "A-B/S", "A/S" and comma lists of those.
Months and weekdays also accept three-letter names (jan..dec, sun..sat).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from croniter import CroniterBadCronError, CroniterBadDateError, croniter

from .errors import MalformedRule, Unsatisfiable

logger = logging.getLogger(__name__)

# Longer than any legitimate rule period: a Feb 29 rule can wait 8 years around 2100.
SEARCH_HORIZON_YEARS = 8

_MONTH_NAMES = {
    name: i
    for i, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_DOW_NAMES = {name: i for i, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))}

# Longest month lengths (leap years included).
_MAX_DAYS = {1: 31, 2: 29, 3: 31, 4: 30, 5: 31, 6: 30, 7: 31, 8: 31, 9: 30, 10: 31, 11: 30, 12: 31}


@dataclass(frozen=True, slots=True)
class _FieldSpec:
    name: str
    low: int
    high: int
    names: dict[str, int]


_FIELDS: tuple[_FieldSpec, ...] = (
    _FieldSpec("minute", 0, 59, {}),
    _FieldSpec("hour", 0, 23, {}),
    _FieldSpec("day_of_month", 1, 31, {}),
    _FieldSpec("month", 1, 12, _MONTH_NAMES),
    _FieldSpec("day_of_week", 0, 7, _DOW_NAMES),
)


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def _parse_value(expression: str, spec: _FieldSpec, raw: str) -> int:
    token = raw.strip().lower()
    if token in spec.names:
        return spec.names[token]
    try:
        value = int(token)
    except ValueError:
        raise MalformedRule(expression, spec.name, f"invalid value {raw!r}") from None
    if not spec.low <= value <= spec.high:
        raise MalformedRule(
            expression, spec.name, f"value {value} out of range {spec.low}-{spec.high}"
        )
    return value


def _parse_field(expression: str, spec: _FieldSpec, raw: str) -> frozenset[int]:
    values: set[int] = set()

    for part in raw.split(","):
        if not part:
            raise MalformedRule(expression, spec.name, "empty list item")

        base, has_step, step_raw = part.partition("/")
        step = 1
        if has_step:
            try:
                step = int(step_raw)
            except ValueError:
                raise MalformedRule(expression, spec.name, f"invalid step {step_raw!r}") from None
            if step < 1:
                raise MalformedRule(expression, spec.name, f"step must be positive, got {step}")

        if base == "*":
            start, end = spec.low, spec.high
        elif "-" in base:
            lo_raw, _, hi_raw = base.partition("-")
            start = _parse_value(expression, spec, lo_raw)
            end = _parse_value(expression, spec, hi_raw)
            # "fri-sun" / "5-0": Sunday closes the week.
            if spec.name == "day_of_week" and end == 0 and start > 0:
                end = 7
            if start > end:
                raise MalformedRule(expression, spec.name, f"descending range {base!r}")
        else:
            start = _parse_value(expression, spec, base)
            end = spec.high if has_step else start

        values.update(range(start, end + 1, step))

    if spec.name == "day_of_week" and 7 in values:
        values.discard(7)
        values.add(0)

    return frozenset(values)


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    """
    A parsed cron expression.

    `fields` holds the expanded value set of each field in order
    (minute, hour, day_of_month, month, day_of_week).
    """

    expression: str
    fields: tuple[frozenset[int], ...]
    day_of_month_restricted: bool
    day_of_week_restricted: bool

    @classmethod
    def parse(cls, expression: str) -> RecurrenceRule:
        raw_fields = (expression or "").split()
        if len(raw_fields) != len(_FIELDS):
            raise MalformedRule(
                expression,
                "expression",
                f"expected {len(_FIELDS)} fields, got {len(raw_fields)}",
            )

        fields = tuple(
            _parse_field(expression, spec, raw) for spec, raw in zip(_FIELDS, raw_fields)
        )
        rule = cls(
            expression=" ".join(raw_fields).lower(),
            fields=fields,
            day_of_month_restricted=raw_fields[2] != "*",
            day_of_week_restricted=raw_fields[4] != "*",
        )
        rule._check_calendar()

        try:
            croniter(rule.expression)
        except CroniterBadCronError as e:
            raise MalformedRule(expression, "expression", str(e)) from e

        return rule

    def _check_calendar(self) -> None:
        # With an unrestricted weekday, the day-of-month must exist in at least one month.
        if not self.day_of_month_restricted or self.day_of_week_restricted:
            return
        days = self.fields[2]
        months = self.fields[3]
        if min(days) > max(_MAX_DAYS[m] for m in months):
            raise Unsatisfiable(
                self.expression, "day-of-month never occurs in the selected months"
            )

    def next_after(self, reference: datetime) -> datetime:
        """Return the first matching instant strictly after `reference` (UTC)."""
        ref = _as_utc(reference)
        try:
            it = croniter(self.expression, ref, max_years_between_matches=SEARCH_HORIZON_YEARS)
            nxt = it.get_next(datetime)
        except CroniterBadDateError as e:
            raise Unsatisfiable(self.expression) from e

        if nxt is None:
            raise Unsatisfiable(self.expression)
        return _as_utc(nxt)

    def __str__(self) -> str:
        return self.expression
