"""
Persisted thumbnail store backed by SQLite.

This module provides `ThumbnailStore`, the key-value table that records a
thumbnail URL per book identifier. The resolution engine reads it as the
first cover tier; the attach-thumbnail write path updates it out of band.
"""

from __future__ import annotations

__all__ = ["ThumbnailStore"]

import contextlib
import logging
import sqlite3
import threading
import types
from pathlib import Path
from typing import Self

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS books (
  id        TEXT NOT NULL PRIMARY KEY,
  thumbnail TEXT
);
"""


class ThumbnailStore:
    """SQLite-backed mapping of book identifier to thumbnail URL.

    A single connection is shared by every caller and guarded by an internal
    lock, so lookups may run on worker threads (``asyncio.to_thread``) while
    writes happen elsewhere.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite file, or ``":memory:"``.
        """
        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Open the SQLite connection and ensure the table exists."""
        with self._lock:
            if self._conn:
                return

            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.executescript(_CREATE_TABLE_SQL)
            conn.commit()
            self._conn = conn

    def get_thumbnail(self, book_id: str) -> str | None:
        """Return the recorded thumbnail URL for a book.

        Args:
            book_id: Book identifier.

        Returns:
            The URL, or None when the book has no row or an empty thumbnail.

        Raises:
            sqlite3.Error: If the query itself fails.
        """
        with self._lock:
            row = self.conn.execute(
                "SELECT thumbnail FROM books WHERE id = ?",
                (book_id,),
            ).fetchone()

        if row is None:
            return None
        return row["thumbnail"] or None

    def get_thumbnails(self, book_ids: list[str]) -> dict[str, str | None]:
        """Look up several books in a single query.

        Args:
            book_ids: Book identifiers.

        Returns:
            A mapping of every requested ID to its URL or None.
        """
        if not book_ids:
            return {}

        placeholders = ",".join("?" for _ in book_ids)
        query = f"SELECT id, thumbnail FROM books WHERE id IN ({placeholders})"
        with self._lock:
            rows = self.conn.execute(query, tuple(book_ids)).fetchall()

        result: dict[str, str | None] = dict.fromkeys(book_ids)
        for row in rows:
            result[row["id"]] = row["thumbnail"] or None
        return result

    def attach_thumbnail(self, book_id: str, thumbnail: str) -> None:
        """Insert or replace the thumbnail URL for a book.

        Args:
            book_id: Book identifier.
            thumbnail: Thumbnail URL to record.

        Raises:
            ValueError: If either argument is empty.
        """
        if not book_id or not thumbnail:
            raise ValueError("book_id and thumbnail are required")

        with self._lock:
            self.conn.execute(
                """
                INSERT INTO books (id, thumbnail)
                VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET thumbnail=excluded.thumbnail
                """,
                (book_id, thumbnail),
            )
            self.conn.commit()
        logger.info("Thumbnail attached for book %s", book_id)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is None:
                return

            with contextlib.suppress(sqlite3.Error):
                self._conn.close()

            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active SQLite connection.

        Raises:
            RuntimeError: If the connection has not been established.
        """
        if self._conn is None:
            raise RuntimeError(
                "Database connection is not established. Call connect() first."
            )
        return self._conn

    def __enter__(self) -> Self:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<ThumbnailStore path='{self._db_path}'>"
