# tests/test_definitions.py

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest

from choreboard.chores.definitions import (
    build_definition,
    build_definitions,
    load_definitions,
    parse_duration,
)
from choreboard.chores.errors import InvalidChoreDefinition, MalformedRule, Unsatisfiable

from .fakes import DISHES, TRASH, utc


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2h", timedelta(hours=2)),
        ("24h", timedelta(hours=24)),
        ("90m", timedelta(minutes=90)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1d 6h", timedelta(days=1, hours=6)),
        ("2 hours", timedelta(hours=2)),
        ("1w", timedelta(weeks=1)),
        ("3600", timedelta(hours=1)),
        (7200, timedelta(hours=2)),
        (1.5, timedelta(seconds=1.5)),
    ],
)
def test_parse_duration(raw, expected) -> None:
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "soon", "2x", "2h and then", True, None, [1]])
def test_parse_duration_rejects(raw) -> None:
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_build_definition() -> None:
    chore = build_definition(TRASH, now=utc(2024, 1, 1))
    assert chore.title == "trash"
    assert chore.rule.expression == "0 18 * * 0"
    assert chore.overdue_offset == timedelta(hours=2)
    assert chore.expiration_offset == timedelta(hours=24)

    dishes = build_definition(DISHES, now=utc(2024, 1, 1))
    assert dishes.expiration_offset is None


def test_bad_rules_abort() -> None:
    with pytest.raises(MalformedRule):
        build_definition({**TRASH, "recurrence_rule": "0 25 * * *"})
    with pytest.raises(Unsatisfiable):
        build_definition({**TRASH, "recurrence_rule": "0 0 31 2 *"})


@pytest.mark.parametrize(
    "patch",
    [
        {"title": ""},
        {"description": None},
        {"recurrence_rule": 5},
        {"overdue_offset": None},
        {"overdue_offset": "0h"},
        {"overdue_offset": "soon"},
        {"expiration_offset": "1h"},
    ],
)
def test_invalid_definitions(patch) -> None:
    with pytest.raises(InvalidChoreDefinition):
        build_definition({**TRASH, **patch}, now=utc(2024, 1, 1))


def test_duplicate_titles_rejected() -> None:
    with pytest.raises(InvalidChoreDefinition) as exc:
        build_definitions([TRASH, DISHES, TRASH], now=utc(2024, 1, 1))
    assert exc.value.title == "trash"


@pytest.mark.parametrize("wrap", [False, True])
def test_load_definitions_file(tmp_path: Path, wrap: bool) -> None:
    path = tmp_path / "chores.json"
    payload = {"chores": [TRASH, DISHES]} if wrap else [TRASH, DISHES]
    path.write_text(json.dumps(payload), "utf-8")

    chores = load_definitions(path, now=utc(2024, 1, 1))
    assert list(chores) == ["trash", "dishes"]


def test_load_definitions_errors(tmp_path: Path) -> None:
    with pytest.raises(InvalidChoreDefinition):
        load_definitions(tmp_path / "missing.json")

    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json", "utf-8")
    with pytest.raises(InvalidChoreDefinition):
        load_definitions(bad_json)

    not_list = tmp_path / "not_list.json"
    not_list.write_text(json.dumps({"chores": {"trash": TRASH}}), "utf-8")
    with pytest.raises(InvalidChoreDefinition):
        load_definitions(not_list)


def test_example_definitions_are_valid() -> None:
    example = Path(__file__).resolve().parents[1] / "chores.example.json"
    chores = load_definitions(example, now=utc(2024, 1, 1))
    assert set(chores) == {"trash", "dishes", "filters"}


@pytest.mark.parametrize("raw", ["999999999999w", 10**20, "1" + "0" * 400])
def test_parse_duration_out_of_range(raw) -> None:
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_huge_offset_is_invalid_definition() -> None:
    with pytest.raises(InvalidChoreDefinition):
        build_definition({**TRASH, "expiration_offset": "999999999w"}, now=utc(2024, 1, 1))


@pytest.mark.parametrize(
    "patch",
    [
        {"overdue_offset": 0.5},
        {"overdue_offset": "0.5s"},
        {"overdue_offset": "2h", "expiration_offset": 7200.25},
    ],
)
def test_sub_second_offsets_rejected(patch) -> None:
    with pytest.raises(InvalidChoreDefinition) as exc:
        build_definition({**DISHES, **patch}, now=utc(2024, 1, 1))
    assert "whole number of seconds" in exc.value.reason
