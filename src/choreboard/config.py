# src/choreboard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time: every value has a default.

Environment variables (prefix CHOREBOARD_):
- APP_NAME                      display name (default: choreboard)
- LOG_LEVEL                     console log level (default: INFO)
- CONSOLE_ENABLED               run the console REPL (default: true)
- DATA_DIR                      local data directory (default: .local/choreboard)
- DB_PATH                       SQLite path (default: <data_dir>/choreboard.sqlite3)
- CHORES_PATH                   chore definitions JSON (default: chores.json)
- RECURRENCE_INTERVAL_SECONDS   recurrence tick period (default: 60)
- SWEEP_INTERVAL_SECONDS        sweep tick period (default: 60)
- STORE_TIMEOUT_SECONDS         SQLite busy timeout (default: 5)
- LIST_LOOKBACK_DAYS            default lookback for /chores (default: 0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "CHOREBOARD"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths ----
    data_dir: Path
    db_path: Path
    chores_path: Path

    # ---- Background ticks ----
    recurrence_interval_seconds: float
    sweep_interval_seconds: float

    # ---- Store ----
    store_timeout_seconds: float

    # ---- Listing ----
    list_lookback_days: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "choreboard") or "choreboard"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/choreboard"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "choreboard.sqlite3")
        chores_path = _env_path(_k("CHORES_PATH"), Path("chores.json"))

        recurrence_interval_seconds = _env_float(_k("RECURRENCE_INTERVAL_SECONDS"), 60.0)
        sweep_interval_seconds = _env_float(_k("SWEEP_INTERVAL_SECONDS"), 60.0)
        store_timeout_seconds = _env_float(_k("STORE_TIMEOUT_SECONDS"), 5.0)

        list_lookback_days = max(0, _env_int(_k("LIST_LOOKBACK_DAYS"), 0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            db_path=db_path,
            chores_path=chores_path,
            recurrence_interval_seconds=recurrence_interval_seconds,
            sweep_interval_seconds=sweep_interval_seconds,
            store_timeout_seconds=store_timeout_seconds,
            list_lookback_days=list_lookback_days,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
