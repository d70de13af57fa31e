# tests/test_engine.py

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from choreboard.chores.chore_api import complete, sweep
from choreboard.chores.chore_models import ChoreDefinition, Occurrence, OccurrenceStatus
from choreboard.chores.chore_store import ChoreStore
from choreboard.chores.engine import RecurrenceEngine, plan_next_occurrence
from choreboard.chores.errors import InvalidChoreDefinition, StoreUnavailable

from .fakes import InMemoryOccurrenceRepo, utc


def _assigned(store: ChoreStore, title: str, since=utc(2000, 1, 1)) -> list:
    return [
        o
        for o in store.list_occurrences(since=since)
        if o.title == title and o.status is OccurrenceStatus.ASSIGNED
    ]


def test_first_tick_creates_occurrence_with_boundaries(chore_store, trash, clock) -> None:
    engine = RecurrenceEngine(chore_store, [trash], clock=clock)

    assert engine.tick() == 1

    occ = chore_store.latest_occurrence("trash")
    assert occ is not None
    assert occ.expected_completion_time == utc(2024, 1, 7, 18, 0)
    assert occ.overdue_time == utc(2024, 1, 7, 20, 0)
    assert occ.expiration_time == utc(2024, 1, 8, 18, 0)
    assert occ.status is OccurrenceStatus.ASSIGNED
    assert occ.created_at == clock()


def test_no_new_occurrence_while_previous_is_open(chore_store, trash, clock) -> None:
    engine = RecurrenceEngine(chore_store, [trash], clock=clock)
    engine.tick()

    for _ in range(3):
        clock.advance(hours=5)
        assert engine.tick() == 0

    assert chore_store.count_occurrences() == 1


def test_completion_unlocks_next_occurrence(chore_store, trash, clock) -> None:
    engine = RecurrenceEngine(chore_store, [trash], clock=clock)
    engine.tick()

    complete(chore_store, "trash", utc(2024, 1, 7, 18, 0))
    clock.advance(hours=7)  # 19:00
    assert engine.tick() == 1

    latest = chore_store.latest_occurrence("trash")
    assert latest is not None
    assert latest.expected_completion_time == utc(2024, 1, 14, 18, 0)


def test_early_completion_schedules_after_the_completed_instant(chore_store, trash, clock) -> None:
    engine = RecurrenceEngine(chore_store, [trash], clock=clock)
    engine.tick()

    # Completed at 12:00, before it was even due.
    complete(chore_store, "trash", utc(2024, 1, 7, 18, 0))
    engine.tick()

    latest = chore_store.latest_occurrence("trash")
    assert latest is not None
    assert latest.expected_completion_time == utc(2024, 1, 14, 18, 0)


def test_sweep_unlocks_next_occurrence_after_now(chore_store, dishes, clock) -> None:
    clock.now = utc(2024, 1, 1, 8, 0)
    engine = RecurrenceEngine(chore_store, [dishes], clock=clock)
    engine.tick()
    # Dishes have no expiration offset: they expire when the next one is due.
    first = chore_store.latest_occurrence("dishes")
    assert first is not None
    assert first.expiration_time == utc(2024, 1, 2, 9, 0)

    # Nobody looked for three days.
    clock.now = utc(2024, 1, 4, 10, 0)
    assert sweep(chore_store, clock()) == 1
    assert engine.tick() == 1

    latest = chore_store.latest_occurrence("dishes")
    assert latest is not None
    assert latest.expected_completion_time == utc(2024, 1, 5, 9, 0)


def test_daily_candidate_after_last_expected(dishes) -> None:
    repo = InMemoryOccurrenceRepo()
    first = dishes.build_occurrence(utc(2024, 1, 1, 9, 0), created_at=utc(2024, 1, 1))
    repo.rows[first.key] = first
    repo.transition(
        "dishes",
        first.expected_completion_time,
        expected_status=OccurrenceStatus.ASSIGNED,
        new_status=OccurrenceStatus.COMPLETED,
    )

    engine = RecurrenceEngine(repo, [dishes])
    created = engine.ensure_next(dishes, utc(2024, 1, 1, 9, 30))
    assert created is not None
    assert created.expected_completion_time == utc(2024, 1, 2, 9, 0)


def test_plan_is_none_while_latest_assigned(trash) -> None:
    latest = trash.build_occurrence(utc(2024, 1, 7, 18, 0), created_at=utc(2024, 1, 7))
    assert plan_next_occurrence(trash, latest, utc(2024, 1, 9)) is None
    assert plan_next_occurrence(trash, None, utc(2024, 1, 9)) is not None


def test_duplicate_insert_is_not_an_error(chore_store, trash, clock) -> None:
    engine = RecurrenceEngine(chore_store, [trash], clock=clock)
    engine.tick()
    existing = chore_store.latest_occurrence("trash")
    assert existing is not None

    again = chore_store.schedule_next("trash", lambda latest: existing)
    assert again is None
    assert chore_store.count_occurrences() == 1


def test_concurrent_ticks_keep_one_assigned_occurrence(chore_store, dishes) -> None:
    """Ticks racing across a cron boundary must not open two occurrences."""
    engine = RecurrenceEngine(chore_store, [dishes])
    base = utc(2024, 1, 1, 8, 59, 50)
    nows = [base + timedelta(seconds=3 * i) for i in range(12)]

    with ThreadPoolExecutor(max_workers=6) as pool:
        results = list(pool.map(lambda now: engine.ensure_next(dishes, now), nows))

    assert sum(1 for r in results if r is not None) == 1
    assert len(_assigned(chore_store, "dishes")) == 1
    assert chore_store.count_occurrences() == 1


def test_invariant_over_two_weeks_of_activity(chore_store, trash, dishes, clock) -> None:
    clock.now = utc(2024, 1, 1)
    engine = RecurrenceEngine(chore_store, [trash, dishes], clock=clock)

    for step in range(24 * 14):
        clock.advance(hours=1)
        engine.tick()
        if step % 5 == 0:
            occ = chore_store.latest_occurrence("dishes")
            if occ is not None and occ.status is OccurrenceStatus.ASSIGNED:
                complete(chore_store, "dishes", occ.expected_completion_time)
        if step % 3 == 0:
            sweep(chore_store, clock())
        assert len(_assigned(chore_store, "trash")) <= 1
        assert len(_assigned(chore_store, "dishes")) <= 1


def test_store_unavailable_aborts_tick(trash, dishes) -> None:
    repo = InMemoryOccurrenceRepo()
    repo.fail_with = StoreUnavailable("database is locked")
    engine = RecurrenceEngine(repo, [trash, dishes])

    with pytest.raises(StoreUnavailable):
        engine.tick(utc(2024, 1, 1))
    assert repo.calls == ["schedule_next"]


def test_store_rejects_occurrence_that_violates_constraints(chore_store) -> None:
    expected = utc(2024, 1, 1, 9, 0)
    # Sub-second grace collapses onto expected once stored as epoch seconds.
    bad = Occurrence(
        title="dishes",
        expected_completion_time=expected,
        status=OccurrenceStatus.ASSIGNED,
        created_at=utc(2024, 1, 1),
        overdue_time=expected + timedelta(milliseconds=500),
        expiration_time=expected + timedelta(hours=1),
    )

    with pytest.raises(InvalidChoreDefinition):
        chore_store.schedule_next("dishes", lambda latest: bad)
    assert chore_store.count_occurrences() == 0


def test_rejected_occurrence_is_logged_not_dropped(chore_store, dishes, trash, caplog) -> None:
    broken = ChoreDefinition(
        title="dishes",
        description=dishes.description,
        rule=dishes.rule,
        overdue_offset=timedelta(milliseconds=500),
        expiration_offset=timedelta(hours=1),
    )
    engine = RecurrenceEngine(chore_store, [broken, trash])

    with caplog.at_level(logging.ERROR, logger="choreboard.chores.engine"):
        assert engine.tick(utc(2024, 1, 1)) == 1

    assert "Recurrence failed for chore dishes" in caplog.text
    assert chore_store.latest_occurrence("dishes") is None
    assert chore_store.latest_occurrence("trash") is not None
