"""
Database Service Module.
Provides the SQLite storage for the active calendar, its current date/time
and the last known value of the external clock.

CRUD work is delegated to the repository classes; this service owns the
connection and the schema, and exposes the CalendarStore interface the
time manager persists through.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, List, Optional

from almanac.core.calendar import CalendarDateTime, CalendarShape
from almanac.core.world_clock import WorldClock
from almanac.services.repositories import CalendarRepository, CalendarStateRepository

logger = logging.getLogger(__name__)

WORLD_TIME_KEY = "world_time"


class DatabaseService:
    """
    Handles all raw interactions with the SQLite database.

    Satisfies the CalendarStore protocol: ``load_shape``, ``save_shape``,
    ``load_state``, ``save_state`` and ``save_calendar`` are read-your-writes
    consistent.
    """

    def __init__(self, db_path: str = ":memory:"):
        """
        Args:
            db_path: Path to the .almanac database file.
                     Defaults to :memory: for testing.
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None

        self._calendar_repo = CalendarRepository()
        self._state_repo = CalendarStateRepository()

        logger.info(f"DatabaseService initialized with path: {self.db_path}")

    def connect(self) -> None:
        """Opens the connection and creates missing tables."""
        try:
            # The HTTP API and clock subscribers may call in from worker threads
            self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode=WAL;")
                logger.debug("WAL mode enabled for database.")
            self._connection.row_factory = sqlite3.Row
            logger.debug("Database connection established.")

            self._init_schema()

            self._calendar_repo.set_connection(self._connection)
            self._state_repo.set_connection(self._connection)
        except sqlite3.Error as e:
            logger.critical(f"Failed to connect to database: {e}")
            raise

    def close(self) -> None:
        """Closes the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            self._calendar_repo.set_connection(None)
            self._state_repo.set_connection(None)
            logger.debug("Database connection closed.")

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commits the enclosed statements, or rolls them back on error."""
        if not self._connection:
            self.connect()
        try:
            yield self._connection
            self._connection.commit()
        except Exception as e:
            self._connection.rollback()
            logger.error(f"Transaction rolled back due to error: {e}")
            raise

    def _init_schema(self) -> None:
        schema_sql = """
        CREATE TABLE IF NOT EXISTS system_meta (
            key TEXT PRIMARY KEY,
            value TEXT
        );

        CREATE TABLE IF NOT EXISTS calendar_config (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            config_json TEXT NOT NULL,
            is_active INTEGER DEFAULT 0,
            created_at REAL,
            modified_at REAL
        );

        CREATE TABLE IF NOT EXISTS calendar_state (
            id TEXT PRIMARY KEY,
            state_json TEXT NOT NULL,
            modified_at REAL
        );
        """

        try:
            with self.transaction() as conn:
                conn.executescript(schema_sql)
            logger.debug("Database schema initialized.")
        except sqlite3.Error as e:
            logger.critical(f"Schema initialization failed: {e}")
            raise

    def _ensure_connected(self) -> None:
        if not self._connection:
            self.connect()

    # --------------------------------------------------------------------------
    # CalendarStore
    # --------------------------------------------------------------------------

    def load_shape(self) -> Optional[CalendarShape]:
        """
        Returns the active calendar shape.

        Returns:
            Optional[CalendarShape]: The active shape, or None if none is stored.
        """
        self._ensure_connected()
        return self._calendar_repo.get_active()

    def save_shape(self, shape: CalendarShape) -> None:
        """
        Stores ``shape`` and makes it the active calendar.

        Args:
            shape: The shape to store.

        Raises:
            sqlite3.Error: If the database operation fails.
        """
        self._ensure_connected()
        self._calendar_repo.upsert(shape, active=True)
        logger.debug(f"Saved active calendar: {shape.id}")

    def load_state(self) -> Optional[CalendarDateTime]:
        """
        Returns the stored current date/time.

        Returns:
            Optional[CalendarDateTime]: The state, or None if none is stored.
        """
        self._ensure_connected()
        return self._state_repo.get()

    def save_state(self, state: CalendarDateTime) -> None:
        """
        Stores the current date/time.

        Args:
            state: The state to store.

        Raises:
            sqlite3.Error: If the database operation fails.
        """
        self._ensure_connected()
        self._state_repo.save(state)

    def save_calendar(self, shape: CalendarShape, state: CalendarDateTime) -> None:
        """
        Stores ``shape`` as the active calendar together with its date/time.

        Both rows are written in one transaction: either both change or
        neither does.

        Args:
            shape: The shape to store and activate.
            state: The date/time that belongs to ``shape``.

        Raises:
            sqlite3.Error: If the database operation fails.
        """
        with self.transaction() as conn:
            self._calendar_repo.stage_upsert(conn, shape, active=True)
            self._state_repo.stage_save(conn, state)
        logger.debug(f"Saved active calendar {shape.id} with its state")

    # --------------------------------------------------------------------------
    # Stored calendars
    # --------------------------------------------------------------------------

    def get_all_calendars(self) -> List[CalendarShape]:
        """Returns every stored calendar, active or not."""
        self._ensure_connected()
        return self._calendar_repo.get_all()

    def get_calendar(self, shape_id: str) -> Optional[CalendarShape]:
        self._ensure_connected()
        return self._calendar_repo.get(shape_id)

    def delete_calendar(self, shape_id: str) -> None:
        self._ensure_connected()
        self._calendar_repo.delete(shape_id)
        logger.debug(f"Deleted calendar: {shape_id}")

    # --------------------------------------------------------------------------
    # System Meta (external clock value)
    # --------------------------------------------------------------------------

    def get_world_time(self) -> Optional[float]:
        """
        Retrieves the last stored value of the external clock.

        Returns:
            Optional[float]: The clock value, or None if not set.
        """
        self._ensure_connected()
        row = self._connection.execute(
            "SELECT value FROM system_meta WHERE key = ?", (WORLD_TIME_KEY,)
        ).fetchone()

        if row and row["value"]:
            try:
                return float(row["value"])
            except (ValueError, TypeError):
                logger.warning(f"Invalid {WORLD_TIME_KEY} value: {row['value']}")
                return None
        return None

    def set_world_time(self, value: float) -> None:
        """
        Stores the external clock value.

        Args:
            value: The clock value in seconds.

        Raises:
            sqlite3.Error: If the database operation fails.
        """
        sql = """
            INSERT INTO system_meta (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """
        with self.transaction() as conn:
            conn.execute(sql, (WORLD_TIME_KEY, str(value)))
        logger.debug(f"Set {WORLD_TIME_KEY} to {value}")

    def restore_world_clock(self) -> WorldClock:
        """
        Creates a world clock at its last stored value and keeps it stored.

        Returns:
            WorldClock: The clock, subscribed to persist every change.
        """
        clock = WorldClock(initial_time=self.get_world_time() or 0.0)
        # Notifications can arrive out of order across threads; store the
        # clock's current value, not the notified one.
        clock.subscribe(lambda _value: self.set_world_time(clock.get_time()))
        return clock
