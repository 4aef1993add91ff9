"""SQLite-backed step store.

One file holds everything that must survive a process restart:

* ``daily_baseline``: one row per calendar day, the counter value at the
  first saved observation of that day. Rows are inserted once and never
  updated.
* ``checkpoint``: a single row with the last saved count and its time.
* ``preferences``: flat text key/value pairs.

Several process instances may use the same file. Every transaction opens its
own connection and starts with ``BEGIN IMMEDIATE``, which takes the database
write lock up front, so read-modify-write sections never interleave.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pystepper.exceptions import StepperStoreError
from pystepper.models.checkpoint import Checkpoint
from pystepper.models.preferences import Preferences

_logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_baseline (
    day TEXT PRIMARY KEY,
    steps INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS checkpoint (
    id INTEGER PRIMARY KEY CHECK (id = 0),
    steps INTEGER NOT NULL,
    saved_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS preferences (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def _encode_pref(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _Transaction:
    """Store operations bound to one open connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_steps(self, day: date) -> int | None:
        row = self._conn.execute("SELECT steps FROM daily_baseline WHERE day = ?", (day.isoformat(),)).fetchone()
        return None if row is None else int(row[0])

    def insert_new_day(self, day: date, baseline: int) -> None:
        self._conn.execute(
            "INSERT OR IGNORE INTO daily_baseline (day, steps) VALUES (?, ?)",
            (day.isoformat(), int(baseline)),
        )

    def save_current_steps(self, steps: int, saved_at: datetime) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO checkpoint (id, steps, saved_at) VALUES (0, ?, ?)",
            (int(steps), saved_at.astimezone(UTC).isoformat()),
        )

    def get_current_steps(self) -> int:
        checkpoint = self.get_checkpoint()
        return 0 if checkpoint is None else checkpoint.saved_steps

    def get_checkpoint(self) -> Checkpoint | None:
        row = self._conn.execute("SELECT steps, saved_at FROM checkpoint WHERE id = 0").fetchone()
        if row is None:
            return None
        return Checkpoint(saved_steps=max(0, int(row[0])), saved_at=datetime.fromisoformat(row[1]))

    def get_days(self) -> list[tuple[date, int]]:
        rows = self._conn.execute("SELECT day, steps FROM daily_baseline ORDER BY day").fetchall()
        return [(date.fromisoformat(day), int(steps)) for day, steps in rows]

    def get_preferences(self) -> dict[str, str]:
        rows = self._conn.execute("SELECT key, value FROM preferences").fetchall()
        return {str(key): str(value) for key, value in rows}

    def set_preference(self, key: str, value: Any) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO preferences (key, value) VALUES (?, ?)",
            (key, _encode_pref(value)),
        )


class StepDatabase:
    """Step store and preferences source on a single SQLite file.

    Usage::

        db = StepDatabase("steps.db")
        with db.transaction() as tx:
            if tx.get_steps(today) is None:
                tx.insert_new_day(today, steps)
            tx.save_current_steps(steps, saved_at=now)
    """

    def __init__(self, path: str | Path, *, timeout: float = 5.0) -> None:
        self._path = str(path)
        self._timeout = timeout
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def path(self) -> str:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are issued explicitly.
        conn = sqlite3.connect(self._path, timeout=self._timeout, isolation_level=None)
        if not self._initialized:
            conn.executescript(_SCHEMA)
            self._initialized = True
        return conn

    @contextmanager
    def transaction(self) -> Iterator[_Transaction]:
        """Open, lock, yield, commit (or roll back) and always close."""
        with self._lock:
            try:
                conn = self._connect()
            except sqlite3.Error as exc:
                raise StepperStoreError(f"Cannot open step database {self._path}: {exc}") from exc
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield _Transaction(conn)
                conn.execute("COMMIT")
            except BaseException as exc:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                if isinstance(exc, sqlite3.Error):
                    raise StepperStoreError(f"Step database transaction failed: {exc}") from exc
                raise
            finally:
                conn.close()

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_preferences(self) -> dict[str, str]:
        with self.transaction() as tx:
            return tx.get_preferences()

    def set_preference(self, key: str, value: Any) -> None:
        """Store one preference. The host app owns these; the core only reads them."""
        with self.transaction() as tx:
            tx.set_preference(key, value)

    def load_preferences(self) -> Preferences:
        """Stored preferences over defaults.

        A value that does not validate is dropped with a warning so one bad
        key cannot take the display down.
        """
        raw = self.get_preferences()
        try:
            return Preferences.model_validate(raw)
        except ValidationError as exc:
            bad_keys = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
            _logger.warning("Ignoring invalid preferences %s", sorted(bad_keys))
            return Preferences.model_validate({k: v for k, v in raw.items() if k not in bad_keys})
