import sqlite3
from datetime import datetime
from typing import Optional, List, Tuple

from ..models import CatalogEntry, FileInfo


def _to_db_date(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat(sep=" ") if dt else None


def _from_db_date(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class CatalogOps:
    """
    Catalog queries over a single connection. Not thread-safe on its own;
    see CatalogStore for the locked, shared variant.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def exists(self, marker: str, relative_path: str) -> bool:
        cur = self.conn.cursor()
        cur.execute("SELECT 1 FROM location WHERE backend = ? AND path = ?", (marker, relative_path))
        return cur.fetchone() is not None

    def upsert(self, marker: str, relative_path: str, info: FileInfo) -> int:
        """
        Stores `info` and points the (marker, relative_path) location at it,
        all in one transaction.

        Identical content seen at another location shares the same file row.
        That row is never rewritten; a date is only filled in where it had none.
        """
        with self.conn:
            cur = self.conn.cursor()
            cur.execute("SELECT file_id FROM location WHERE backend = ? AND path = ?", (marker, relative_path))
            row = cur.fetchone()
            previous_id = row[0] if row else None

            cur.execute("""
                INSERT INTO file (hash, date, thumbnail)
                VALUES (?, ?, ?)
                ON CONFLICT(hash) DO UPDATE SET date = COALESCE(file.date, excluded.date)
            """, (info.hash, _to_db_date(info.date), info.thumb))

            cur.execute("SELECT id FROM file WHERE hash = ?", (info.hash,))
            file_id = int(cur.fetchone()[0])

            cur.execute("""
                INSERT INTO location (file_id, backend, path)
                VALUES (?, ?, ?)
                ON CONFLICT(backend, path) DO UPDATE SET file_id = excluded.file_id
            """, (file_id, marker, relative_path))

            # A replaced location may leave its old content unreferenced.
            if previous_id is not None and previous_id != file_id:
                cur.execute("""
                    DELETE FROM file
                    WHERE id = ? AND NOT EXISTS (SELECT 1 FROM location WHERE file_id = ?)
                """, (previous_id, previous_id))

        return file_id

    # --- Read surface (gallery/browsing) ---

    def count(self) -> int:
        cur = self.conn.cursor()
        cur.execute("SELECT COUNT(*) FROM file")
        return cur.fetchone()[0]

    def page(self, offset: int, limit: int) -> List[CatalogEntry]:
        """Files ordered by capture date; undated ones come last."""
        cur = self.conn.cursor()
        cur.execute("""
            SELECT id, hash, date, thumbnail
            FROM file
            ORDER BY date IS NULL, date, id
            LIMIT ? OFFSET ?
        """, (limit, offset))
        return [
            CatalogEntry(id=r[0], hash=r[1], date=_from_db_date(r[2]), thumb=r[3])
            for r in cur.fetchall()
        ]

    def get(self, marker: str, relative_path: str) -> Optional[CatalogEntry]:
        cur = self.conn.cursor()
        cur.execute("""
            SELECT f.id, f.hash, f.date, f.thumbnail
            FROM location l
            JOIN file f ON l.file_id = f.id
            WHERE l.backend = ? AND l.path = ?
        """, (marker, relative_path))
        r = cur.fetchone()
        if r is None:
            return None
        return CatalogEntry(id=r[0], hash=r[1], date=_from_db_date(r[2]), thumb=r[3])

    def locations(self, file_id: int) -> List[Tuple[str, str]]:
        """Returns (backend, path) pairs for a file, ordered by backend then path."""
        cur = self.conn.cursor()
        cur.execute("""
            SELECT backend, path FROM location
            WHERE file_id = ?
            ORDER BY backend, path
        """, (file_id,))
        return cur.fetchall()
