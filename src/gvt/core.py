"""Core data models for gvt."""

from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from .utils import compute_digest


# ============= File Information =============

class FileInfo(BaseModel):
    """Information about a single file."""

    path: str
    digest: str  # sha256:...
    size: int
    mtime: Optional[float] = None


# ============= Change Detection =============

class ChangeType(str, Enum):
    """State of a tracked file relative to the latest generation."""

    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    MISSING = "missing"


class StatusEntry(BaseModel):
    """Single tracked file compared against the working tree."""

    path: str
    change_type: ChangeType
    stored: FileInfo
    working: Optional[FileInfo] = None


class StatusReport(BaseModel):
    """Working tree compared with the latest generation."""

    latest: int
    active: int
    entries: List[StatusEntry] = Field(default_factory=list)

    def counts(self) -> Dict[ChangeType, int]:
        result = {change: 0 for change in ChangeType}
        for entry in self.entries:
            result[entry.change_type] += 1
        return result

    @property
    def is_clean(self) -> bool:
        return all(e.change_type == ChangeType.UNCHANGED for e in self.entries)


def scan_files(tracked: Iterable[str], root: Path) -> Dict[str, FileInfo]:
    """Digest each tracked path that is a regular file under root.

    Missing paths are left out of the result.
    """
    files = {}
    for relpath in tracked:
        path = root / relpath
        if not path.is_file():
            continue
        stat = path.stat()
        files[relpath] = FileInfo(
            path=relpath,
            digest=compute_digest(path),
            size=stat.st_size,
            mtime=stat.st_mtime,
        )
    return files
