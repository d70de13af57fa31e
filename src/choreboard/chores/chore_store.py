# src/choreboard/chores/chore_store.py

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from ..core.ports import SchedulePlan
from ..core.sqlite_base import SQLiteStore
from .chore_models import Occurrence, OccurrenceStatus, from_epoch, to_epoch
from .errors import InvalidChoreDefinition

logger = logging.getLogger(__name__)


class ChoreStore(SQLiteStore):
    """
    SQLite occurrence store.

    Natural key: (title, expected_completion_time). Timestamps are INTEGER epoch seconds.
    Only 'assigned', 'completed' and 'missed' can be stored (CHECK constraint).
    """

    def __init__(self, db_path: str | Path = "choreboard.sqlite3", *, timeout: float = 5.0) -> None:
        super().__init__(db_path, timeout=timeout)
        try:
            total = self.count_occurrences()
        except Exception:
            total = -1
        logger.info("ChoreStore ready db=%s total=%s", self._db_path, total)

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chores (
                    title TEXT NOT NULL,
                    expected_completion_time INTEGER NOT NULL,
                    status TEXT NOT NULL DEFAULT 'assigned'
                        CHECK(status IN ('assigned', 'completed', 'missed')),
                    created_at INTEGER NOT NULL DEFAULT (STRFTIME('%s', 'now')),
                    overdue_time INTEGER NOT NULL
                        CHECK(overdue_time > expected_completion_time),
                    expiration_time INTEGER NOT NULL
                        CHECK(expiration_time >= overdue_time),
                    PRIMARY KEY (title, expected_completion_time)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_chores_status_expiration "
                "ON chores(status, expiration_time)"
            )

    @staticmethod
    def _row_to_occurrence(row: sqlite3.Row) -> Occurrence:
        return Occurrence(
            title=str(row["title"]),
            expected_completion_time=from_epoch(row["expected_completion_time"]),
            status=OccurrenceStatus.from_db(row["status"]),
            created_at=from_epoch(row["created_at"]),
            overdue_time=from_epoch(row["overdue_time"]),
            expiration_time=from_epoch(row["expiration_time"]),
        )

    # ---- public API ----

    def count_occurrences(self) -> int:
        with self._connection() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM chores").fetchone()
            return int(n)

    def latest_occurrence(self, title: str) -> Occurrence | None:
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT *
                FROM chores
                WHERE title = ?
                ORDER BY expected_completion_time DESC
                    LIMIT 1
                """,
                (title,),
            ).fetchone()
            return self._row_to_occurrence(row) if row else None

    def get_occurrence(self, title: str, expected_completion_time: datetime) -> Occurrence | None:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM chores WHERE title = ? AND expected_completion_time = ?",
                (title, to_epoch(expected_completion_time)),
            ).fetchone()
            return self._row_to_occurrence(row) if row else None

    def schedule_next(self, title: str, plan: SchedulePlan) -> Occurrence | None:
        """
        Read-decide-insert for one chore inside a single BEGIN IMMEDIATE transaction.

        Only a natural-key conflict is ignored: a concurrent tick that already
        created the same occurrence makes this a no-op, not an error. A row the
        CHECK constraints reject raises InvalidChoreDefinition.
        """
        with self._transaction() as conn:
            row = conn.execute(
                """
                SELECT *
                FROM chores
                WHERE title = ?
                ORDER BY expected_completion_time DESC
                    LIMIT 1
                """,
                (title,),
            ).fetchone()
            latest = self._row_to_occurrence(row) if row else None

            occurrence = plan(latest)
            if occurrence is None:
                return None

            try:
                cur = conn.execute(
                    """
                    INSERT INTO chores(
                        title, expected_completion_time, status,
                        created_at, overdue_time, expiration_time
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(title, expected_completion_time) DO NOTHING
                    """,
                    (
                        occurrence.title,
                        to_epoch(occurrence.expected_completion_time),
                        occurrence.status.value,
                        to_epoch(occurrence.created_at),
                        to_epoch(occurrence.overdue_time),
                        to_epoch(occurrence.expiration_time),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise InvalidChoreDefinition(
                    f"occurrence at {occurrence.expected_completion_time.isoformat()} rejected by store: {e}",
                    title=occurrence.title,
                ) from e

            if cur.rowcount != 1:
                logger.debug(
                    "Occurrence already present title=%s expected=%s",
                    occurrence.title,
                    occurrence.expected_completion_time.isoformat(),
                )
                return None
            return occurrence

    def transition(
        self,
        title: str,
        expected_completion_time: datetime,
        *,
        expected_status: OccurrenceStatus,
        new_status: OccurrenceStatus,
    ) -> bool:
        """
        Compare-and-swap on the status column.

        Atomically transitions:
          status = expected_status -> status = new_status

        Returns True if the row was updated by this caller.
        """
        with self._connection() as conn:
            cur = conn.execute(
                """
                UPDATE chores
                SET status = ?
                WHERE title = ?
                  AND expected_completion_time = ?
                  AND status = ?
                """,
                (
                    new_status.value,
                    title,
                    to_epoch(expected_completion_time),
                    expected_status.value,
                ),
            )
            return cur.rowcount == 1

    def list_expired_assigned(self, now: datetime) -> list[Occurrence]:
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM chores
                WHERE status = 'assigned'
                  AND expiration_time <= ?
                ORDER BY expiration_time ASC
                """,
                (to_epoch(now),),
            ).fetchall()
            return [self._row_to_occurrence(r) for r in rows]

    def list_occurrences(self, *, since: datetime) -> list[Occurrence]:
        """
        Occurrences expected at or after `since`, plus every occurrence still
        stored as assigned (so the current one is always visible).
        """
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM chores
                WHERE expected_completion_time >= ?
                   OR status = 'assigned'
                ORDER BY expected_completion_time ASC, title ASC
                """,
                (to_epoch(since),),
            ).fetchall()
            return [self._row_to_occurrence(r) for r in rows]
