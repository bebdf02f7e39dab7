import io
import logging
from datetime import datetime
from typing import Optional, Dict, Any

import exifread

from .. import config


def read_exif_tags(buf: bytes, label: str = "") -> Optional[Dict[str, Any]]:
    """
    Parses the EXIF block out of in-memory file bytes.

    Returns None when there is no EXIF at all, or when exifread cannot make
    sense of it. Missing metadata is normal, so this never raises.
    """
    try:
        # details=False skips maker notes and thumbnails
        tags = exifread.process_file(io.BytesIO(buf), details=False)
    except Exception as e:
        logging.debug(f"EXIF read failed for {label}: {e}")
        return None

    if not tags:
        logging.debug(f"No EXIF tags found for {label}")
        return None
    return tags


def parse_exif_datetime(value) -> Optional[datetime]:
    """EXIF format is "YYYY:MM:DD HH:MM:SS"."""
    try:
        dt_str = str(value).strip().replace(':', '-', 2)
        return datetime.strptime(dt_str, "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None


def exif_datetime(tags: Optional[Dict[str, Any]]) -> Optional[datetime]:
    """First parseable date among config.DATE_TAGS, in that order."""
    if not tags:
        return None
    for tag in config.DATE_TAGS:
        if tag in tags:
            dt = parse_exif_datetime(tags[tag])
            if dt:
                return dt
    return None
