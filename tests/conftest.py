# tests/conftest.py

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from choreboard.chores.chore_models import ChoreDefinition
from choreboard.chores.chore_store import ChoreStore
from choreboard.chores.definitions import build_definition
from choreboard.cli.bootstrap import create_initial_state
from choreboard.core.state import AppState
from choreboard.flashes.flash_store import FlashStore

from .fakes import DISHES, TRASH, FakeClock, InMemoryOccurrenceRepo, utc


@pytest.fixture()
def clock() -> FakeClock:
    # Sunday 2024-01-07, before the trash is due.
    return FakeClock(utc(2024, 1, 7, 12, 0))


@pytest.fixture()
def trash() -> ChoreDefinition:
    return build_definition(TRASH, now=utc(2024, 1, 1))


@pytest.fixture()
def dishes() -> ChoreDefinition:
    return build_definition(DISHES, now=utc(2024, 1, 1))


@pytest.fixture()
def chore_store(tmp_path: Path) -> ChoreStore:
    return ChoreStore(tmp_path / "choreboard.sqlite3", timeout=5.0)


@pytest.fixture()
def flash_store(tmp_path: Path, clock: FakeClock) -> FlashStore:
    return FlashStore(tmp_path / "choreboard.sqlite3", timeout=5.0, clock=clock)


@pytest.fixture()
def memory_repo() -> InMemoryOccurrenceRepo:
    return InMemoryOccurrenceRepo()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    chores_path = tmp_path / "chores.json"
    chores_path.write_text(json.dumps({"chores": [TRASH, DISHES]}), "utf-8")
    return SimpleNamespace(
        app_name="choreboard-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path / "data",
        db_path=tmp_path / "data" / "choreboard.sqlite3",
        chores_path=chores_path,
        recurrence_interval_seconds=0.01,
        sweep_interval_seconds=0.01,
        store_timeout_seconds=5.0,
        list_lookback_days=0,
    )


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock) -> AppState:
    """
    AppState wired through the real bootstrap.

    NOTE: We keep real SQLite stores here because their conditional-write
    behaviour is part of what we want to test.
    """
    return create_initial_state(settings=settings, clock=clock)
