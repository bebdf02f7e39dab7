import os
from pathlib import Path, PurePath
from typing import Iterator, Optional, Set

from .. import config
from ..models import Tree, WalkResult


def iter_tree(tree: Tree, exts: Optional[Set[str]] = None) -> Iterator[WalkResult]:
    """
    Depth-first walk of the tree root using os.scandir, yielding image files in
    stable (case-insensitive) order.

    Entries that cannot be reached are yielded as error results instead of
    ending the walk, so the caller can skip them and keep going.
    """
    exts = exts if exts is not None else config.IMAGE_EXTS
    stack = [tree.root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            yield WalkResult(path=current, error=e)
            continue

        entries.sort(key=lambda e: e.name.lower())

        dirs = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    dirs.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=False):
                    if Path(entry.name).suffix.lower() in exts:
                        yield WalkResult(path=Path(entry.path))
            except OSError as e:
                yield WalkResult(path=Path(entry.path), error=e)

        # Push dirs to stack (reversed so we process A before Z)
        for d in reversed(dirs):
            stack.append(d)


def relative_slash_path(root: Path, path: Path) -> str:
    """Split-out relative path from root, and render it with slashes."""
    return PurePath(path).relative_to(root).as_posix()
