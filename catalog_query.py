#!/usr/bin/env python

import argparse
import sqlite3
from pathlib import Path

from photo_indexer.database.ops import CatalogOps


def connect_db(db_path: Path) -> sqlite3.Connection:
    if not db_path.exists():
        raise SystemExit(f"DB not found: {db_path}")
    return sqlite3.connect(db_path)


def show_count(conn: sqlite3.Connection):
    print(f"Cataloged files: {CatalogOps(conn).count()}")


def list_page(conn: sqlite3.Connection, page: int, page_size: int):
    ops = CatalogOps(conn)
    entries = ops.page(page * page_size, page_size)
    if not entries:
        print(f"Page {page} is empty.")
        return

    print("id    | date                 | thumb_kb | hash")
    print("------+----------------------+----------+-----------------")
    for e in entries:
        date = e.date.isoformat(sep=" ") if e.date else ""
        print(f"{e.id:5d} | {date.ljust(20)} | {len(e.thumb) / 1024:8.1f} | {e.hash[:16]}")


def show_locations(conn: sqlite3.Connection, file_id: int):
    locations = CatalogOps(conn).locations(file_id)
    if not locations:
        print(f"No locations for file id={file_id}")
        return

    print(f"Locations of file {file_id}:")
    for backend, path in locations:
        print(f"  {backend}: {path}")


def parse_args():
    p = argparse.ArgumentParser(description="Query helper for the photo_catalog SQLite DB.")
    p.add_argument("--db", required=True, help="Path to photo_catalog.db")
    p.add_argument("--page-size", type=int, default=50, help="Rows per page for --page")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--count", action="store_true", help="Show how many files are cataloged")
    group.add_argument("--page", type=int, help="List one page of files ordered by date (0-based)")
    group.add_argument("--locations", type=int, metavar="FILE_ID", help="List every marker/path a file was seen at")
    return p.parse_args()


def main():
    args = parse_args()
    conn = connect_db(Path(args.db).resolve())

    try:
        if args.count:
            show_count(conn)
        elif args.page is not None:
            list_page(conn, args.page, args.page_size)
        elif args.locations is not None:
            show_locations(conn, args.locations)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
