"""Sidecar index recording entry metadata for a local bucket."""

import sqlite3
import threading
from pathlib import Path
from typing import Optional

from ..errors import StorageIOError
from ..models import SourceRecord, StoredEntry
from ..utils import get_iso_timestamp


class EntryIndex:
    """Record creation time and source paths of stored objects.

    Uses SQLite for persistence next to the object tree, so object files keep
    raw content bytes only. Thread-safe with proper locking; a new connection
    is opened per call so the index can also be shared between processes.
    """

    def __init__(self, db_path: Path):
        """Initialize index with database path.

        Args:
            db_path: Path to SQLite database file

        Raises:
            StorageIOError: If the database cannot be created
        """
        self.db_path = db_path
        self._lock = threading.Lock()
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path), timeout=30)

    def _init_database(self):
        """Initialize SQLite schema."""
        with self._lock:
            try:
                conn = self._connect()
                try:
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS entries (
                            digest TEXT PRIMARY KEY,
                            size INTEGER NOT NULL,
                            created TEXT NOT NULL
                        )
                    """)
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS sources (
                            digest TEXT NOT NULL,
                            path TEXT NOT NULL,
                            recorded TEXT NOT NULL,
                            UNIQUE (digest, path)
                        )
                    """)
                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_sources_digest ON sources(digest)
                    """)
                    conn.commit()
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise StorageIOError(f"Cannot initialize index {self.db_path}: {e}") from e

    def record(self, digest: str, size: int, source_path: Optional[str] = None) -> None:
        """Record an entry, keeping the first creation time.

        Args:
            digest: Content digest
            size: Content size in bytes
            source_path: Optional path the content was backed up from;
                recorded once per (digest, path) pair

        Raises:
            StorageIOError: If the index cannot be written
        """
        now = get_iso_timestamp()
        with self._lock:
            try:
                conn = self._connect()
                try:
                    conn.execute(
                        "INSERT OR IGNORE INTO entries (digest, size, created) VALUES (?, ?, ?)",
                        (digest, size, now),
                    )
                    if source_path:
                        conn.execute(
                            "INSERT OR IGNORE INTO sources (digest, path, recorded) VALUES (?, ?, ?)",
                            (digest, source_path, now),
                        )
                    conn.commit()
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise StorageIOError(f"Cannot update index for {digest}: {e}") from e

    def lookup(self, digest: str) -> Optional[StoredEntry]:
        """Look up entry metadata.

        Args:
            digest: Content digest

        Returns:
            StoredEntry or None if the digest was never recorded
        """
        with self._lock:
            try:
                conn = self._connect()
                try:
                    row = conn.execute(
                        "SELECT size, created FROM entries WHERE digest = ?",
                        (digest,),
                    ).fetchone()
                    if row is None:
                        return None
                    sources = conn.execute(
                        "SELECT path, recorded FROM sources WHERE digest = ? ORDER BY recorded, rowid",
                        (digest,),
                    ).fetchall()
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise StorageIOError(f"Cannot read index for {digest}: {e}") from e

        return StoredEntry(
            digest=digest,
            size=row[0],
            created=row[1],
            sources=[SourceRecord(path=p, recorded=r) for p, r in sources],
        )
