"""
Configuration constants and scan configuration loading for the photo indexer.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .exceptions import ConfigError
from .models import DatePath

# --- File Type Definitions ---
IMAGE_EXTS = {'.jpg', '.jpeg'}

# --- Metadata Parsing ---
# Tried in order, first parseable value wins.
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'EXIF DateTimeDigitized',
    'Image DateTime',
]

# --- Thumbnails ---
THUMBNAIL_SIZE = (200, 200)
THUMBNAIL_QUALITY = 90

# --- Scanning ---
DEFAULT_MAX_WORKERS = 4
DEFAULT_DB_NAME = "photo_catalog.db"


@dataclass
class ScanConfig:
    """
    What to scan: marker file paths, plus the date-path rules per marker id.
    """
    markers: List[Path] = field(default_factory=list)
    date_paths: Dict[str, List[DatePath]] = field(default_factory=dict)


def load_scan_config(path: Path) -> ScanConfig:
    """
    Loads the JSON scan configuration.

    Expected layout:
        {
          "markers": {"disk": ["/mnt/photos/.marker.json", ...]},
          "date_path": {"<marker id>": [{"path": "<regex>", "date": "<template>"}]}
        }

    Relative marker paths are resolved against the config file's directory.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config {path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config {path} must be a JSON object")

    markers = raw.get("markers", {})
    if not isinstance(markers, dict) or not isinstance(markers.get("disk", []), list):
        raise ConfigError("'markers.disk' must be a list of marker file paths")

    base = path.parent
    marker_paths = []
    for entry in markers.get("disk", []):
        if not isinstance(entry, str):
            raise ConfigError(f"Marker path must be a string, got: {entry!r}")
        p = Path(entry).expanduser()
        marker_paths.append(p if p.is_absolute() else base / p)

    return ScanConfig(
        markers=marker_paths,
        date_paths=parse_date_paths(raw.get("date_path", {})),
    )


def parse_date_paths(raw) -> Dict[str, List[DatePath]]:
    """Compiles the per-marker {path, date} rules, keeping their order."""
    if not isinstance(raw, dict):
        raise ConfigError("'date_path' must map marker ids to lists of rules")

    result: Dict[str, List[DatePath]] = {}
    for marker, rules in raw.items():
        if not isinstance(rules, list):
            raise ConfigError(f"Date-path rules for {marker!r} must be a list")
        compiled = []
        for rule in rules:
            if not isinstance(rule, dict) or "path" not in rule or "date" not in rule:
                raise ConfigError(f"Date-path rule for {marker!r} needs 'path' and 'date': {rule!r}")
            try:
                pattern = re.compile(rule["path"])
            except (re.error, TypeError) as e:
                raise ConfigError(f"Bad date-path pattern {rule['path']!r} for {marker!r}: {e}") from e
            compiled.append(DatePath(pattern=pattern, template=str(rule["date"])))
        result[marker] = compiled
        logging.debug(f"Loaded {len(compiled)} date-path rule(s) for marker {marker}")
    return result
