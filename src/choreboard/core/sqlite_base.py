# src/choreboard/core/sqlite_base.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path

from ..chores.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class SQLiteStore:
    """
    Shared connection handling for the SQLite-backed stores.

    Thread-safety:
    - each method opens its own SQLite connection
    - connections run in autocommit mode; a single UPDATE/INSERT is atomic on its own
    - multi-statement work goes through _transaction() (BEGIN IMMEDIATE)

    Every sqlite3 operational failure (locked db past the busy timeout, IO error)
    is raised as StoreUnavailable.
    """

    def __init__(self, db_path: str | Path, *, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._timeout = max(0.1, float(timeout))
        self._ensure_schema()

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"cannot open {self._db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.OperationalError as e:
            raise StoreUnavailable(f"store operation failed on {self._db_path}: {e}") from e
        finally:
            conn.close()

    @contextlib.contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Short write transaction; the write lock is taken up front."""
        with self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                with contextlib.suppress(sqlite3.Error):
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _ensure_schema(self) -> None:
        raise NotImplementedError
