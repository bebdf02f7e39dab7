import argparse
import logging
import sys
from pathlib import Path

from .config import load_scan_config, ScanConfig
from .core import PhotoIndexerApp
from .exceptions import CatalogError, ConfigError, TreeError
from .metadata.dates import preview_date_paths
from .reporting import ReportGenerator
from .scanning.marker import resolve_tree
from . import config

def setup_logging(log_dir: Path, verbose: bool):
    """Sets up logging to both console and a file next to the catalog."""
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "indexer.log"

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Photo Indexer: catalog images from marker-identified trees")

    p.add_argument("config", type=Path, help="JSON scan config (marker paths, date-path rules)")

    p.add_argument("--db", type=Path, default=None, help=f"SQLite catalog path (default: ./{config.DEFAULT_DB_NAME})")
    p.add_argument("--workers", type=int, default=config.DEFAULT_MAX_WORKERS, help="Trees scanned in parallel")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--report-csv", type=Path, default=None, help="Write skipped trees/files to this CSV")
    p.add_argument("--check-dates", action="store_true",
                   help="Only show which dates the date-path rules give for each file; catalog is not touched")

    return p.parse_args(argv)

def check_dates(scan_config: ScanConfig):
    """Prints relative path -> expanded template -> parsed date, per tree."""
    for marker_path in scan_config.markers:
        try:
            tree = resolve_tree(marker_path)
        except TreeError as e:
            logging.warning(f"Skipping tree: {e}")
            continue

        date_paths = scan_config.date_paths.get(tree.marker, [])
        print(f"== {tree.marker} ({tree.root}), {len(date_paths)} rule(s)")
        for relative, expanded, dt in preview_date_paths(tree, date_paths):
            shown = dt.isoformat(sep=" ") if dt else "UNPARSEABLE"
            print(f"{relative} | {expanded} | {shown}")

def main(argv=None):
    args = parse_args(argv)

    db_path = (args.db if args.db else Path.cwd() / config.DEFAULT_DB_NAME).resolve()
    setup_logging(db_path.parent, args.verbose)

    logging.info("=== Photo Indexer Started ===")
    logging.info(f"Config:  {args.config}")
    logging.info(f"Catalog: {db_path}")

    try:
        scan_config = load_scan_config(args.config)
    except ConfigError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1

    if args.check_dates:
        check_dates(scan_config)
        return 0

    app = PhotoIndexerApp(db_path)

    try:
        report = app.scan(scan_config, max_workers=args.workers)
    except KeyboardInterrupt:
        logging.warning("Scan cancelled by user. Files cataloged so far are kept.")
        return 1
    except CatalogError as e:
        logging.error(f"Catalog unusable, scan aborted: {e}")
        return 1
    except Exception:
        logging.exception("Fatal error during scan.")
        return 1

    reporter = ReportGenerator(report)
    reporter.log_summary()
    if args.report_csv:
        reporter.write_csv(args.report_csv)

    return 0

if __name__ == "__main__":
    sys.exit(main())
