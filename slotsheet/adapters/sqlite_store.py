"""
SQLite-backed slot store.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence

from ..domain.exceptions import GridConsistencyError, PersistenceError
from ..domain.models import Slot

logger = logging.getLogger(__name__)

TABLE_NAME = "time_slots"
COLUMNS = ("week_idx", "day_idx", "slot_idx", "member_name", "charge_time", "peak_time")


class SqliteSlotStore:
    """
    Stores one row per slot in the ``time_slots`` table.

    Row shape: (week_idx, day_idx, slot_idx, member_name, charge_time, peak_time)
    with (week_idx, day_idx, slot_idx) as the primary key.

    Outside a transaction every call opens its own connection, so the store
    can be shared between threads. ``transaction()`` pins one connection to
    the calling thread and starts it with ``BEGIN IMMEDIATE``: the database
    write lock is taken before the first read, so any other writer (another
    thread, another store on the same file, another process) waits until
    the block commits or rolls back. The busy timeout bounds that wait.
    """

    def __init__(self, path: Path | str, timeout: float = 5.0):
        """
        Initialize the store and bootstrap the schema.

        Args:
            path: Path to the SQLite database file
            timeout: Seconds to wait for a locked database before failing

        Raises:
            PersistenceError: If the database cannot be opened
            GridConsistencyError: If an existing table has an unexpected schema
        """
        self.path = Path(path)
        self.timeout = timeout
        self._local = threading.local()
        self._create_schema()

    def _open(self) -> sqlite3.Connection:
        # Autocommit mode: transactions are started and ended explicitly
        return sqlite3.connect(str(self.path), timeout=self.timeout, isolation_level=None)

    @contextmanager
    def _connection(self) -> Iterator[tuple[sqlite3.Connection, bool]]:
        """Yield the thread's transaction connection, or a fresh one and whether it is fresh."""
        active = getattr(self._local, "conn", None)
        if active is not None:
            yield active, False
            return

        conn = self._open()
        try:
            yield conn, True
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Run the block in one immediate transaction.

        Nested use from the same thread joins the outer transaction.

        Raises:
            PersistenceError: If the write lock cannot be taken or the commit fails
        """
        if getattr(self._local, "conn", None) is not None:
            yield
            return

        try:
            conn = self._open()
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to lock slot database {self.path}: {e}") from e

        self._local.conn = conn
        try:
            yield
        except BaseException:
            conn.rollback()
            raise
        else:
            try:
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceError(f"Failed to commit slot changes: {e}") from e
        finally:
            self._local.conn = None
            conn.close()

    def _create_schema(self) -> None:
        try:
            with self._connection() as (conn, _):
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
                    "week_idx INTEGER NOT NULL, "
                    "day_idx INTEGER NOT NULL, "
                    "slot_idx INTEGER NOT NULL, "
                    "member_name TEXT, "
                    "charge_time INTEGER, "
                    "peak_time INTEGER NOT NULL DEFAULT 0, "
                    "PRIMARY KEY (week_idx, day_idx, slot_idx))"
                )
                columns = tuple(row[1] for row in conn.execute(f"PRAGMA table_info({TABLE_NAME})"))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to open slot database {self.path}: {e}") from e

        if columns != COLUMNS:
            raise GridConsistencyError(
                f"Table {TABLE_NAME} in {self.path} has columns {columns}, expected {COLUMNS}"
            )

        logger.debug("Slot database ready at %s", self.path)

    def count_slots(self, week_index: int) -> int:
        try:
            with self._connection() as (conn, _):
                (count,) = conn.execute(
                    f"SELECT COUNT(*) FROM {TABLE_NAME} WHERE week_idx = ?",
                    (week_index,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to count slots: {e}") from e

        return count

    def load_slots(self, week_index: int) -> List[Slot]:
        try:
            with self._connection() as (conn, _):
                rows = conn.execute(
                    f"SELECT day_idx, slot_idx, member_name, charge_time, peak_time "
                    f"FROM {TABLE_NAME} WHERE week_idx = ? ORDER BY day_idx, slot_idx",
                    (week_index,)
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load slots: {e}") from e

        return [self._row_to_slot(row) for row in rows]

    def save_slots(self, week_index: int, slots: Sequence[Slot]) -> None:
        """Upsert all slots, atomically. Inside a transaction the rows commit with it."""
        params = [
            (
                week_index,
                slot.day_index,
                slot.slot_index,
                slot.member_name,
                None if slot.charge_time is None else int(slot.charge_time),
                int(slot.peak_time),
            )
            for slot in slots
        ]
        try:
            with self._connection() as (conn, fresh):
                if fresh:
                    conn.execute("BEGIN IMMEDIATE")
                try:
                    conn.executemany(
                        f"INSERT INTO {TABLE_NAME} ({', '.join(COLUMNS)}) "
                        "VALUES (?, ?, ?, ?, ?, ?) "
                        "ON CONFLICT (week_idx, day_idx, slot_idx) DO UPDATE SET "
                        "member_name = excluded.member_name, "
                        "charge_time = excluded.charge_time, "
                        "peak_time = excluded.peak_time",
                        params
                    )
                except sqlite3.Error:
                    if fresh:
                        conn.rollback()
                    raise
                if fresh:
                    conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save {len(params)} slot(s): {e}") from e

    @staticmethod
    def _row_to_slot(row: tuple) -> Slot:
        day_idx, slot_idx, member_name, charge_time, peak_time = row
        try:
            return Slot(
                day_index=day_idx,
                slot_index=slot_idx,
                peak_time=bool(peak_time),
                member_name=member_name,
                charge_time=None if charge_time is None else bool(charge_time),
            )
        except ValueError as e:
            raise GridConsistencyError(str(e)) from e
