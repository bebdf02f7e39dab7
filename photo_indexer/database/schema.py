"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the catalog schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Cataloged content: one row per distinct content hash
        conn.execute("""
        CREATE TABLE IF NOT EXISTS file (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            hash            TEXT NOT NULL UNIQUE,   -- SHA-256 of raw bytes
            date            TEXT,                   -- capture datetime, ISO format
            thumbnail       BLOB NOT NULL           -- JPEG bytes
        );
        """)

        # 3. Where each file was seen: (marker id, tree-relative path)
        conn.execute("""
        CREATE TABLE IF NOT EXISTS location (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            file_id         INTEGER NOT NULL,
            backend         TEXT NOT NULL,          -- marker id
            path            TEXT NOT NULL,          -- slash-separated, relative to tree root
            UNIQUE (backend, path),
            FOREIGN KEY(file_id) REFERENCES file(id) ON DELETE CASCADE
        );
        """)

        # 4. Indices for Performance
        conn.execute("CREATE INDEX IF NOT EXISTS idx_file_date ON file(date);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_location_file_id ON location(file_id);")

    logging.debug("Database schema initialized.")
