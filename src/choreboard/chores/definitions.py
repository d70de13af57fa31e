# src/choreboard/chores/definitions.py

from __future__ import annotations

"""
Chore definitions loader.

The definitions file is JSON, read once at startup. Accepted shapes:

    [ {"title": ..., "description": ..., "recurrence_rule": ..., ...}, ... ]
    {"chores": [ ... ]}

Durations are either numbers (seconds) or strings like "2h", "1d 6h", "90m", "1h30m".
Any malformed entry raises; the process must not start with it.
"""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from .chore_models import ChoreDefinition, utc_now
from .errors import InvalidChoreDefinition
from .recurrence import RecurrenceRule

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)")
_UNITS = {
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}


def _seconds(value: Any, raw: Any) -> timedelta:
    try:
        return timedelta(seconds=float(value))
    except (OverflowError, ValueError) as e:
        raise ValueError(f"duration out of range {raw!r}") from e


def parse_duration(raw: Any) -> timedelta:
    """Parse "2h", "1d 6h", "1h30m" or a number of seconds into a timedelta."""
    if isinstance(raw, bool):
        raise ValueError(f"invalid duration {raw!r}")
    if isinstance(raw, (int, float)):
        return _seconds(raw, raw)
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"invalid duration {raw!r}")

    text = raw.strip().lower()
    if re.fullmatch(r"\d+(?:\.\d+)?", text):
        return _seconds(text, raw)

    total = 0.0
    pos = 0
    for m in _DURATION_PART.finditer(text):
        if text[pos : m.start()].strip():
            raise ValueError(f"invalid duration {raw!r}")
        unit = _UNITS.get(m.group(2))
        if unit is None:
            raise ValueError(f"unknown duration unit {m.group(2)!r} in {raw!r}")
        total += float(m.group(1)) * unit
        pos = m.end()

    if pos == 0 or text[pos:].strip():
        raise ValueError(f"invalid duration {raw!r}")
    return _seconds(total, raw)


def _require_str(entry: Mapping[str, Any], key: str, title: str | None) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidChoreDefinition(f"{key} is required", title=title)
    return value.strip()


def _duration(entry: Mapping[str, Any], key: str, title: str) -> timedelta | None:
    raw = entry.get(key)
    if raw is None:
        return None
    try:
        value = parse_duration(raw)
    except ValueError as e:
        raise InvalidChoreDefinition(f"{key}: {e}", title=title) from e
    # Occurrence boundaries are stored as epoch seconds.
    if value.microseconds:
        raise InvalidChoreDefinition(f"{key} must be a whole number of seconds", title=title)
    return value


def build_definition(entry: Mapping[str, Any], *, now: datetime | None = None) -> ChoreDefinition:
    """
    Validate one record and return the definition.

    Raises MalformedRule / Unsatisfiable for bad recurrence rules and
    InvalidChoreDefinition for everything else.
    """
    if not isinstance(entry, Mapping):
        raise InvalidChoreDefinition(f"expected an object, got {type(entry).__name__}")

    title = _require_str(entry, "title", None)
    description = _require_str(entry, "description", title)
    rule_text = _require_str(entry, "recurrence_rule", title)

    rule = RecurrenceRule.parse(rule_text)
    # A rule that passes parsing can still have no instant in the search horizon.
    rule.next_after(now or utc_now())

    overdue_offset = _duration(entry, "overdue_offset", title)
    if overdue_offset is None:
        raise InvalidChoreDefinition("overdue_offset is required", title=title)
    if overdue_offset <= timedelta(0):
        raise InvalidChoreDefinition("overdue_offset must be positive", title=title)

    expiration_offset = _duration(entry, "expiration_offset", title)
    if expiration_offset is not None and expiration_offset < overdue_offset:
        raise InvalidChoreDefinition(
            "expiration_offset must not be shorter than overdue_offset", title=title
        )

    return ChoreDefinition(
        title=title,
        description=description,
        rule=rule,
        overdue_offset=overdue_offset,
        expiration_offset=expiration_offset,
    )


def build_definitions(
    entries: Iterable[Mapping[str, Any]], *, now: datetime | None = None
) -> dict[str, ChoreDefinition]:
    """Build definitions keyed by title (in file order). Titles must be unique."""
    out: dict[str, ChoreDefinition] = {}
    for entry in entries:
        chore = build_definition(entry, now=now)
        if chore.title in out:
            raise InvalidChoreDefinition("duplicate title", title=chore.title)
        out[chore.title] = chore
    return out


def load_definitions(path: str | Path, *, now: datetime | None = None) -> dict[str, ChoreDefinition]:
    path = Path(path)
    try:
        data = json.loads(path.read_text("utf-8"))
    except FileNotFoundError as e:
        raise InvalidChoreDefinition(f"definitions file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidChoreDefinition(f"cannot read {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("chores")
    if not isinstance(data, list):
        raise InvalidChoreDefinition(f"{path}: expected a list of chores")

    chores = build_definitions(data, now=now)
    logger.info("Loaded %d chore definition(s) from %s", len(chores), path)
    return chores
