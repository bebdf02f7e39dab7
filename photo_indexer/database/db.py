"""
Database connection management, and the lock-guarded catalog handle shared by
scan workers.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional, List, Tuple

from ..exceptions import CatalogError
from ..models import CatalogEntry, FileInfo
from .ops import CatalogOps
from .schema import init_schema

class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """
        Connects to the SQLite database and configures performance pragmas.
        The connection may be used from several threads; CatalogStore
        serializes access to it.
        """
        if self._conn:
            return self._conn

        logging.info(f"Connecting to database: {self.db_path}")
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)

            # Performance Tuning (Safe for single-writer, multi-reader)
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn.execute("PRAGMA temp_store=MEMORY;")
            self._conn.execute("PRAGMA foreign_keys=ON;")

            # Ensure schema exists
            init_schema(self._conn)
        except sqlite3.Error as e:
            raise CatalogError(f"Cannot open catalog {self.db_path}: {e}") from e

        return self._conn

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class CatalogStore:
    """
    The one catalog handle passed to every scan worker.

    Each operation holds the lock only for its own duration, so workers never
    wait on each other's decoding or thumbnail work. Exists-then-upsert is
    therefore not atomic; two workers racing on the same location both write
    the same record, which is harmless.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._ops = CatalogOps(conn)
        self._lock = threading.Lock()

    def exists(self, marker: str, relative_path: str) -> bool:
        with self._lock:
            try:
                return self._ops.exists(marker, relative_path)
            except sqlite3.Error as e:
                raise CatalogError(f"exists({marker}, {relative_path}) failed: {e}") from e

    def upsert(self, marker: str, relative_path: str, info: FileInfo) -> int:
        with self._lock:
            try:
                return self._ops.upsert(marker, relative_path, info)
            except sqlite3.Error as e:
                raise CatalogError(f"upsert({marker}, {relative_path}) failed: {e}") from e

    def count(self) -> int:
        with self._lock:
            try:
                return self._ops.count()
            except sqlite3.Error as e:
                raise CatalogError(f"count() failed: {e}") from e

    def page(self, offset: int, limit: int) -> List[CatalogEntry]:
        with self._lock:
            try:
                return self._ops.page(offset, limit)
            except sqlite3.Error as e:
                raise CatalogError(f"page({offset}, {limit}) failed: {e}") from e

    def get(self, marker: str, relative_path: str) -> Optional[CatalogEntry]:
        with self._lock:
            try:
                return self._ops.get(marker, relative_path)
            except sqlite3.Error as e:
                raise CatalogError(f"get({marker}, {relative_path}) failed: {e}") from e

    def locations(self, file_id: int) -> List[Tuple[str, str]]:
        with self._lock:
            try:
                return self._ops.locations(file_id)
            except sqlite3.Error as e:
                raise CatalogError(f"locations({file_id}) failed: {e}") from e
