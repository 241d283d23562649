"""
Calendar State Repository Module.

Stores the current date/time in the single-row ``calendar_state`` table.
"""

import logging
import sqlite3
import time
from typing import Optional

from almanac.core.calendar import CalendarDateTime
from almanac.services.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)

STATE_ROW_ID = "current"

_UPSERT_SQL = """
    INSERT INTO calendar_state (id, state_json, modified_at)
    VALUES (?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        state_json=excluded.state_json,
        modified_at=excluded.modified_at;
"""


class CalendarStateRepository(BaseRepository):
    """Repository for the current calendar date/time."""

    def get(self) -> Optional[CalendarDateTime]:
        """
        Returns the stored date/time, or None if nothing is stored yet.
        """
        row = self.connection.execute(
            "SELECT state_json FROM calendar_state WHERE id = ?", (STATE_ROW_ID,)
        ).fetchone()
        if not row:
            return None
        return CalendarDateTime.from_json(row["state_json"])

    def save(self, state: CalendarDateTime) -> None:
        """
        Replaces the stored date/time.

        Args:
            state: The date/time to store.

        Raises:
            sqlite3.Error: If the database operation fails.
        """
        with self.transaction() as conn:
            self.stage_save(conn, state)
        logger.debug(f"Stored calendar state: {state}")

    def stage_save(self, conn: sqlite3.Connection, state: CalendarDateTime) -> None:
        """Writes the date/time on ``conn`` without committing."""
        conn.execute(_UPSERT_SQL, (STATE_ROW_ID, state.to_json(), time.time()))
