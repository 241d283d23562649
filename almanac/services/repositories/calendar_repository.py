"""
Calendar Repository Module.

Stores calendar shapes in the ``calendar_config`` table. At most one row
is flagged active; that row is the engine's current calendar.
"""

import logging
import sqlite3
import time
from typing import List, Optional

from almanac.core.calendar import CalendarShape
from almanac.services.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)

_UPSERT_SQL = """
    INSERT INTO calendar_config
        (id, name, config_json, is_active, created_at, modified_at)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        name=excluded.name,
        config_json=excluded.config_json,
        is_active=excluded.is_active,
        modified_at=excluded.modified_at;
"""


class CalendarRepository(BaseRepository):
    """Repository for calendar shapes."""

    def upsert(self, shape: CalendarShape, active: bool = False) -> None:
        """
        Inserts a shape, or replaces the stored shape with the same id.

        The creation timestamp of an existing row is kept.

        Args:
            shape: The shape to store.
            active: Whether to make it the active calendar. Activating
                deactivates every other row in the same transaction.

        Raises:
            sqlite3.Error: If the database operation fails.
        """
        with self.transaction() as conn:
            self.stage_upsert(conn, shape, active)
        logger.debug(f"Stored calendar {shape.id} (active={active})")

    def stage_upsert(
        self, conn: sqlite3.Connection, shape: CalendarShape, active: bool = False
    ) -> None:
        """
        Executes the upsert on ``conn`` without committing.

        Lets DatabaseService write a shape and a state in one transaction.
        """
        now = time.time()
        if active:
            conn.execute("UPDATE calendar_config SET is_active = 0")
        conn.execute(
            _UPSERT_SQL,
            (shape.id, shape.name, shape.to_json(), 1 if active else 0, now, now),
        )

    def get(self, shape_id: str) -> Optional[CalendarShape]:
        """
        Fetches a shape by id.

        Args:
            shape_id: The calendar id.

        Returns:
            Optional[CalendarShape]: The shape, or None if not stored.
        """
        row = self.connection.execute(
            "SELECT config_json FROM calendar_config WHERE id = ?", (shape_id,)
        ).fetchone()
        return CalendarShape.from_json(row["config_json"]) if row else None

    def get_all(self) -> List[CalendarShape]:
        """Returns every stored shape, ordered by name."""
        rows = self.connection.execute(
            "SELECT config_json FROM calendar_config ORDER BY name ASC"
        ).fetchall()
        return [CalendarShape.from_json(row["config_json"]) for row in rows]

    def get_active(self) -> Optional[CalendarShape]:
        """
        Fetches the active shape.

        Returns:
            Optional[CalendarShape]: The active shape, or None if no row is active.
        """
        row = self.connection.execute(
            "SELECT config_json FROM calendar_config WHERE is_active = 1 LIMIT 1"
        ).fetchone()
        return CalendarShape.from_json(row["config_json"]) if row else None

    def set_active(self, shape_id: str) -> None:
        """
        Makes a stored shape the active one.

        Args:
            shape_id: The calendar id.

        Raises:
            ValueError: If no shape with that id is stored.
        """
        with self.transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM calendar_config WHERE id = ?", (shape_id,)
            ).fetchone()
            if not exists:
                raise ValueError(f"No stored calendar with id {shape_id!r}")
            conn.execute("UPDATE calendar_config SET is_active = 0")
            conn.execute(
                "UPDATE calendar_config SET is_active = 1 WHERE id = ?", (shape_id,)
            )

    def delete(self, shape_id: str) -> None:
        """Deletes a stored shape."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM calendar_config WHERE id = ?", (shape_id,))
