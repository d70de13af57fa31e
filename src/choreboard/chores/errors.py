# src/choreboard/chores/errors.py

from __future__ import annotations

"""
Error taxonomy for the chores core.

Configuration-time errors (MalformedRule, Unsatisfiable, InvalidChoreDefinition)
are fatal: the process must not start with them.
Request-time errors (NotFound, Conflict, StoreUnavailable) are surfaced to the caller.
"""

from datetime import datetime


class ChoreError(Exception):
    """Base class for every error raised by the chores core."""


class MalformedRule(ChoreError):
    def __init__(self, expression: str, field: str, reason: str) -> None:
        self.expression = expression
        self.field = field
        self.reason = reason
        super().__init__(f"Malformed recurrence rule {expression!r}: {field}: {reason}")


class Unsatisfiable(ChoreError):
    def __init__(self, expression: str, reason: str = "no matching time within search horizon") -> None:
        self.expression = expression
        self.reason = reason
        super().__init__(f"Unsatisfiable recurrence rule {expression!r}: {reason}")


class InvalidChoreDefinition(ChoreError):
    def __init__(self, reason: str, title: str | None = None) -> None:
        self.reason = reason
        self.title = title
        where = f" (chore {title!r})" if title else ""
        super().__init__(f"Invalid chore definition{where}: {reason}")


class NotFound(ChoreError):
    pass


class Conflict(ChoreError):
    """Completion targeted an occurrence that is already terminal."""

    def __init__(self, title: str, expected_completion_time: datetime, status: str) -> None:
        self.title = title
        self.expected_completion_time = expected_completion_time
        self.status = status
        super().__init__(
            f"Occurrence {title!r} at {expected_completion_time.isoformat()} is already {status}"
        )


class StoreUnavailable(ChoreError):
    """Transient storage failure (locked database, IO error, timeout)."""
