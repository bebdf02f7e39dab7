import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class Tree:
    """
    One scanned root directory, identified by the id in its marker file.
    """
    marker: str
    root: Path


@dataclass(frozen=True)
class DatePath:
    """A path pattern with named groups, and the date template they expand into."""
    pattern: re.Pattern
    template: str


@dataclass
class FileInfo:
    """
    The cataloged representation of one image.
    """
    hash: str
    date: Optional[datetime]
    thumb: bytes


@dataclass
class CatalogEntry:
    id: int
    hash: str
    date: Optional[datetime]
    thumb: bytes


@dataclass
class WalkResult:
    """One item produced by a tree walk: either a file path or the error hit reaching it."""
    path: Path
    error: Optional[OSError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FileFailure:
    path: Path
    stage: str              # walk/read/decode/path
    error: str


@dataclass
class TreeReport:
    """
    Outcome of scanning one configured marker path.
    """
    marker_path: Path
    marker: Optional[str] = None
    status: str = "pending"     # pending/skipped/failed/done
    error: Optional[str] = None
    added: int = 0
    known: int = 0
    failures: List[FileFailure] = field(default_factory=list)

    def failures_in(self, stage: str) -> List[FileFailure]:
        return [f for f in self.failures if f.stage == stage]


@dataclass
class ScanReport:
    trees: List[TreeReport] = field(default_factory=list)

    @property
    def added(self) -> int:
        return sum(t.added for t in self.trees)

    @property
    def known(self) -> int:
        return sum(t.known for t in self.trees)

    @property
    def failures(self) -> List[FileFailure]:
        return [f for t in self.trees for f in t.failures]
