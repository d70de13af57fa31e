# src/choreboard/flashes/flash_store.py

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from ..chores.chore_models import from_epoch, to_epoch, utc_now
from ..chores.errors import NotFound
from ..core.ports import Clock
from ..core.sqlite_base import SQLiteStore
from .flash_models import Flash

logger = logging.getLogger(__name__)


class FlashStore(SQLiteStore):
    """Short acknowledgeable notices. Rows are never deleted."""

    def __init__(
        self,
        db_path: str | Path = "choreboard.sqlite3",
        *,
        timeout: float = 5.0,
        clock: Clock = utc_now,
    ) -> None:
        self._clock = clock
        super().__init__(db_path, timeout=timeout)

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS flashes (
                    id INTEGER NOT NULL PRIMARY KEY,
                    contents TEXT NOT NULL,
                    created_at INTEGER NOT NULL DEFAULT (STRFTIME('%s', 'now')),
                    acknowledged INTEGER NOT NULL DEFAULT 0,
                    acknowledged_at INTEGER
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_flashes_active ON flashes(acknowledged, created_at)"
            )

    @staticmethod
    def _row_to_flash(row: sqlite3.Row) -> Flash:
        ack_at = row["acknowledged_at"]
        return Flash(
            id=int(row["id"]),
            contents=str(row["contents"] or ""),
            created_at=from_epoch(row["created_at"]),
            acknowledged=bool(row["acknowledged"]),
            acknowledged_at=from_epoch(ack_at) if ack_at is not None else None,
        )

    def create(self, contents: str) -> Flash:
        text = (contents or "").strip()
        if not text:
            raise ValueError("contents is required")

        now = self._clock()
        with self._connection() as conn:
            cur = conn.execute(
                "INSERT INTO flashes(contents, created_at) VALUES (?, ?)",
                (text, to_epoch(now)),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for flashes insert")

        logger.info("Flash created id=%s", rowid)
        return Flash(id=int(rowid), contents=text, created_at=from_epoch(to_epoch(now)))

    def get(self, flash_id: int) -> Flash | None:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM flashes WHERE id = ?", (int(flash_id),)).fetchone()
            return self._row_to_flash(row) if row else None

    def list_active(self) -> list[Flash]:
        """Unacknowledged flashes, most recent first."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM flashes
                WHERE acknowledged = 0
                ORDER BY created_at DESC, id DESC
                """
            ).fetchall()
            return [self._row_to_flash(r) for r in rows]

    def acknowledge(self, flash_id: int) -> Flash:
        """
        Mark a flash acknowledged. Acknowledging twice is a no-op:
        acknowledged_at keeps the first acknowledgement time.
        """
        now = self._clock()
        with self._connection() as conn:
            cur = conn.execute(
                """
                UPDATE flashes
                SET acknowledged = 1,
                    acknowledged_at = ?
                WHERE id = ?
                  AND acknowledged = 0
                """,
                (to_epoch(now), int(flash_id)),
            )
            changed = cur.rowcount == 1

        flash = self.get(flash_id)
        if flash is None:
            raise NotFound(f"Flash {flash_id} not found")
        if changed:
            logger.info("Flash %s acknowledged", flash_id)
        return flash
