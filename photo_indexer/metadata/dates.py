"""
Capture date inference.

Sources, first hit wins:
  1) EXIF date fields (see config.DATE_TAGS for the order)
  2) Per-marker date-path rules, tried in configured order

File-system timestamps are never used: creation and modification times do
not survive copies between disks and platforms.
"""
import logging
from datetime import datetime
from string import Template
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from ..models import DatePath, Tree
from ..scanning.walker import iter_tree, relative_slash_path
from .extract import exif_datetime, parse_exif_datetime

# Formats accepted for an expanded date template, after ISO 8601 and EXIF style.
PARTIAL_DATE_FORMATS = ["%Y-%m", "%Y%m%d", "%Y"]


def deduce_date(exif_tags: Optional[Dict[str, Any]],
                relative_path: str,
                date_paths: Iterable[DatePath]) -> Optional[datetime]:
    """Try hard to find out a capture date from EXIF, or from the relative path."""
    dt = exif_datetime(exif_tags)
    if dt:
        return dt

    for date_path in date_paths:
        expanded = expand_date_path(date_path, relative_path)
        if expanded is None:
            continue
        dt = parse_date_string(expanded)
        if dt:
            return dt
        logging.debug(f"Date-path {date_path.pattern.pattern!r} gave unparseable {expanded!r} for {relative_path}")
    return None


def expand_date_path(date_path: DatePath, relative_path: str) -> Optional[str]:
    """
    Matches `relative_path` against the rule's pattern and fills its template
    with the named groups ($name or ${name}). Returns None when it doesn't match.
    """
    m = date_path.pattern.search(relative_path)
    if not m:
        return None
    groups = {k: (v if v is not None else "") for k, v in m.groupdict().items()}
    return Template(date_path.template).safe_substitute(groups)


def parse_date_string(value: str) -> Optional[datetime]:
    """
    Handles ISO dates, EXIF style and a few partial forms (year-month, year).
    Returns a naive datetime, or None if nothing fits.
    """
    clean = value.strip()
    if not clean:
        return None

    try:
        return datetime.fromisoformat(clean).replace(tzinfo=None)
    except ValueError:
        pass

    dt = parse_exif_datetime(clean)
    if dt:
        return dt

    for fmt in PARTIAL_DATE_FORMATS:
        try:
            return datetime.strptime(clean, fmt)
        except ValueError:
            continue
    return None


def preview_date_paths(tree: Tree,
                       date_paths: Iterable[DatePath]) -> Iterator[Tuple[str, str, Optional[datetime]]]:
    """
    Dry-run of the date-path rules over a whole tree.
    Yields (relative_path, expansion, parsed date) for every file a rule matched.
    """
    date_paths = list(date_paths)
    for item in iter_tree(tree):
        if not item.ok:
            continue
        relative = relative_slash_path(tree.root, item.path)
        for date_path in date_paths:
            expanded = expand_date_path(date_path, relative)
            if expanded is not None:
                yield relative, expanded, parse_date_string(expanded)
                break
