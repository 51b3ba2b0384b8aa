"""Gitignore-style pattern matching for gvt."""

from pathlib import Path
from typing import Iterable

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern

from .constants import IGNORE_FILE, INTERNAL_PATTERNS


# Default patterns to always ignore
DEFAULTS = [
    # Version control
    ".git/",
    ".hg/",
    ".svn/",

    # Python
    "__pycache__/",
    "*.pyc",
    "*.pyo",

    # IDE and editors
    ".idea/",
    ".vscode/",
    "*.swp",
    "*.swo",
    "*~",

    # OS files
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
]

# Compiled once; matches single entry names at any depth
_INTERNAL_SPEC = PathSpec.from_lines(GitWildMatchPattern, INTERNAL_PATTERNS)


def is_internal(name: str) -> bool:
    """Check whether an entry name is reserved for repository metadata.

    Used as the exclusion predicate for every snapshot copy, so it is
    applied to bare names, not paths.
    """
    return _INTERNAL_SPEC.match_file(name)


def has_internal_component(relpath: str) -> bool:
    """Check whether any component of a POSIX relative path is internal."""
    return any(is_internal(part) for part in relpath.split("/") if part)


class IgnoreSpec:
    """Manages gitignore-style patterns for files offered to `add`."""

    def __init__(self, root: Path, extra: Iterable[str] = ()):
        """Initialize ignore spec with default and custom patterns.

        Args:
            root: Working tree root
            extra: Additional patterns to include
        """
        self.root = root
        patterns = list(DEFAULTS)

        ignore_file = root / IGNORE_FILE
        if ignore_file.exists():
            for line in ignore_file.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)

        patterns.extend(extra)
        self.spec = PathSpec.from_lines(GitWildMatchPattern, patterns)

    def is_ignored(self, relpath: str) -> bool:
        """Check if a working-tree-relative POSIX path should be ignored."""
        return self.spec.match_file(relpath)
