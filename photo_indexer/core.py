import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from .database.db import DBManager, CatalogStore
from .exceptions import CatalogError, ImageDecodeError, MarkerInvalidError, MarkerNotFoundError
from .models import DatePath, FileFailure, ScanReport, TreeReport
from .scanning.marker import resolve_tree
from .scanning.processor import ContentProcessor
from .scanning.walker import iter_tree, relative_slash_path
from .config import ScanConfig
from . import config


def scan(store: CatalogStore,
         scan_config: ScanConfig,
         max_workers: int = config.DEFAULT_MAX_WORKERS,
         processor: Optional[ContentProcessor] = None) -> ScanReport:
    """
    Adds not-yet-known images from every configured tree into the catalog.

    Trees are scanned in parallel, one worker each; files inside a tree are
    handled one by one. Missing markers, broken markers and bad files are
    logged and collected in the returned report. Only a CatalogError is
    raised, once every tree has finished.
    """
    processor = processor or ContentProcessor()
    report = ScanReport(trees=[TreeReport(marker_path=p) for p in scan_config.markers])
    fatal: Optional[CatalogError] = None

    max_workers = max(1, max_workers)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(process_tree, i, tree_report, scan_config.date_paths, store, processor)
            for i, tree_report in enumerate(report.trees)
        ]
        for future, tree_report in zip(futures, report.trees):
            try:
                future.result()
            except CatalogError as e:
                logging.error(f"Catalog failure while scanning {tree_report.marker_path}: {e}")
                tree_report.status = "failed"
                tree_report.error = str(e)
                fatal = fatal or e
            except Exception as e:
                logging.exception(f"Failed to scan tree {tree_report.marker_path}: {e}")
                tree_report.status = "failed"
                tree_report.error = str(e)

    # TODO: second pass that drops catalog locations whose files are gone from disk
    if fatal:
        raise fatal
    return report


def process_tree(index: int,
                 tree_report: TreeReport,
                 date_paths_per_marker: Dict[str, List[DatePath]],
                 store: CatalogStore,
                 processor: ContentProcessor) -> TreeReport:
    """
    Runs one tree through: resolve marker -> walk -> process each new file.
    Fills in `tree_report` as it goes.
    """
    marker_path = tree_report.marker_path
    try:
        tree = resolve_tree(marker_path)
    except MarkerNotFoundError as e:
        logging.info(f"Skipping tree: {e}")
        tree_report.status = "skipped"
        tree_report.error = str(e)
        return tree_report
    except MarkerInvalidError as e:
        logging.error(f"Skipping tree: {e}")
        tree_report.status = "failed"
        tree_report.error = str(e)
        return tree_report

    tree_report.marker = tree.marker
    logging.info(f"Marker {tree.marker!r} at: {tree.root}")

    date_paths = date_paths_per_marker.get(tree.marker, [])
    logging.debug(f"Date-paths at {tree.marker!r}: {[dp.pattern.pattern for dp in date_paths]}")

    with tqdm(desc=tree.marker, unit="file", position=index, leave=True, disable=None) as bar:
        for item in iter_tree(tree):
            bar.update(1)
            if not item.ok:
                logging.warning(f"Failed to access {item.path}, skipping: {item.error}")
                tree_report.failures.append(FileFailure(item.path, "walk", str(item.error)))
                continue

            path = item.path
            try:
                relative = relative_slash_path(tree.root, path)
            except ValueError as e:
                logging.warning(f"Cannot make {path} relative to {tree.root}, skipping: {e}")
                tree_report.failures.append(FileFailure(path, "path", str(e)))
                continue

            # Known locations are never re-read.
            if store.exists(tree.marker, relative):
                tree_report.known += 1
                continue

            try:
                buf = path.read_bytes()
            except OSError as e:
                logging.warning(f"Failed to read {path}, skipping: {e}")
                tree_report.failures.append(FileFailure(path, "read", str(e)))
                continue

            try:
                info = processor.process(buf, relative, date_paths)
            except ImageDecodeError as e:
                logging.warning(f"Failed to decode image {path}, skipping: {e}")
                tree_report.failures.append(FileFailure(path, "decode", str(e)))
                continue

            store.upsert(tree.marker, relative, info)
            tree_report.added += 1
            bar.set_postfix(added=tree_report.added, known=tree_report.known)

    tree_report.status = "done"
    logging.info(
        f"Tree {tree.marker!r} done: {tree_report.added} added, {tree_report.known} already known, "
        f"{len(tree_report.failures)} failed"
    )
    return tree_report


class PhotoIndexerApp:
    def __init__(self, db_path: Path):
        self.db_manager = DBManager(db_path)

    def scan(self, scan_config: ScanConfig, max_workers: int = config.DEFAULT_MAX_WORKERS) -> ScanReport:
        """
        Opens the catalog and scans every configured tree into it.
        """
        with self.db_manager as conn:
            store = CatalogStore(conn)
            logging.info(f"Scanning {len(scan_config.markers)} tree(s) with {max_workers} worker(s)...")
            report = scan(store, scan_config, max_workers=max_workers)
            logging.info(f"Scan complete. Catalog holds {store.count()} file(s).")
            return report
