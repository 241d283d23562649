"""
Base Repository Module.

Shared connection handling for the repository classes.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class BaseRepository:
    """
    Base class for repositories.

    The connection is owned by DatabaseService and handed in once it is open.
    """

    def __init__(self, connection: Optional[sqlite3.Connection] = None) -> None:
        self._connection = connection

    def set_connection(self, connection: Optional[sqlite3.Connection]) -> None:
        """
        Attaches (or detaches, with None) the database connection.

        Args:
            connection: The SQLite connection.
        """
        self._connection = connection

    @property
    def connection(self) -> sqlite3.Connection:
        """The attached connection; raises RuntimeError if there is none."""
        if self._connection is None:
            raise RuntimeError("Database connection not initialized")
        return self._connection

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Runs the enclosed statements as one transaction.

        Commits on success and rolls back if the block raises.

        Yields:
            sqlite3.Connection: The attached connection.

        Raises:
            RuntimeError: If no connection is attached.
        """
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise
