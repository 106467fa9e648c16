"""Durable set of article URLs already selected by a previous run.

The store is append-only: a URL, once marked, is never offered again.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)


class SeenStoreError(Exception):
    """Raised when the store cannot be opened or initialized."""


class SeenStore:
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.init_database()
        except (OSError, sqlite3.Error) as e:
            raise SeenStoreError(f"Cannot open seen store at {self.db_path}: {e}") from e

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_database(self) -> None:
        with self.get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS seen (
                    url TEXT PRIMARY KEY,
                    first_seen INTEGER
                )
                """
            )

    def is_seen(self, url: Optional[str]) -> bool:
        if not url:
            return False
        try:
            with self.get_connection() as conn:
                row = conn.execute("SELECT 1 FROM seen WHERE url = ?", (url,)).fetchone()
            return row is not None
        except sqlite3.Error as e:
            logger.warning(f"seen store lookup failed for {url}: {e}")
            return False

    def mark_seen(self, url: Optional[str], *, now: Optional[float] = None) -> None:
        if not url:
            return
        first_seen = int(now if now is not None else time.time())
        try:
            with self.get_connection() as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO seen (url, first_seen) VALUES (?, ?)",
                    (url, first_seen),
                )
        except sqlite3.Error as e:
            logger.warning(f"seen store mark failed for {url}: {e}")

    def first_seen(self, url: str) -> Optional[int]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT first_seen FROM seen WHERE url = ?", (url,)).fetchone()
        return int(row[0]) if row else None

    def count(self) -> int:
        with self.get_connection() as conn:
            row = conn.execute("SELECT COUNT(*) FROM seen").fetchone()
        return int(row[0] or 0)
