import json
import logging
from pathlib import Path

from ..exceptions import MarkerInvalidError, MarkerNotFoundError
from ..models import Tree


def resolve_tree(marker_path: Path) -> Tree:
    """
    Reads the marker file at `marker_path` and returns the Tree it identifies.
    The tree root is the marker's parent directory.

    Raises:
        MarkerNotFoundError: the marker file does not exist.
        MarkerInvalidError: the marker exists but is unreadable or malformed.
    """
    marker_path = Path(marker_path)
    try:
        with marker_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise MarkerNotFoundError(marker_path) from None
    except (OSError, UnicodeDecodeError) as e:
        raise MarkerInvalidError(marker_path, f"failed to open: {e}") from e
    except json.JSONDecodeError as e:
        raise MarkerInvalidError(marker_path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MarkerInvalidError(marker_path, "expected a JSON object")
    marker_id = data.get("id")
    if not isinstance(marker_id, str) or not marker_id:
        raise MarkerInvalidError(marker_path, "field 'id' must be a non-empty string")

    tree = Tree(marker=marker_id, root=marker_path.parent)
    logging.debug(f"Resolved marker {tree.marker!r} at {tree.root}")
    return tree
