"""Repository context for managing paths and repository discovery."""

import os
from pathlib import Path
from typing import Optional, Union

from .config import RepoConfig, load_config
from .errors import OutsideRepositoryError
from .ignore import IgnoreSpec
from .store import SnapshotStore, locate


class RepositoryContext:
    """Resolves working tree paths and opens the snapshot store."""

    def __init__(self, start_path: Optional[Path] = None):
        """Initialize context by finding the repository root.

        Raises:
            NotInitializedError: If no repository contains start_path
        """
        self.repo_root = locate(start_path)
        self.root = self.repo_root.parent
        self._config: Optional[RepoConfig] = None
        self._store: Optional[SnapshotStore] = None
        self._ignore_spec: Optional[IgnoreSpec] = None

    def resolve(self, path: Union[str, Path]) -> str:
        """Convert a user-supplied path to a working-tree-relative POSIX string.

        Relative paths are taken from the current directory. Parent
        directories are resolved, the final component is not, so a tracked
        symlink keeps its own name.

        Raises:
            OutsideRepositoryError: If the path is not inside the working tree
        """
        absolute = Path(os.path.abspath(path))
        absolute = absolute.parent.resolve() / absolute.name
        try:
            relative = absolute.relative_to(self.root)
        except ValueError:
            raise OutsideRepositoryError(path) from None
        if relative == Path("."):
            raise OutsideRepositoryError(path)
        return relative.as_posix()

    def absolute(self, relpath: Union[str, Path]) -> Path:
        """Get absolute path from working-tree-relative path."""
        return self.root / relpath

    @property
    def config(self) -> RepoConfig:
        """Repository configuration (memoized)."""
        if self._config is None:
            self._config = load_config(self.repo_root)
        return self._config

    @property
    def store(self) -> SnapshotStore:
        """Snapshot store configured from config.yaml (memoized)."""
        if self._store is None:
            self._store = SnapshotStore(self.repo_root, link_mode=self.config.link_mode)
        return self._store

    def get_ignore_spec(self) -> IgnoreSpec:
        """Get the ignore specification (memoized)."""
        if self._ignore_spec is None:
            self._ignore_spec = IgnoreSpec(self.root)
        return self._ignore_spec

    def should_ignore(self, relpath: Union[str, Path]) -> bool:
        """Check if a working-tree-relative path matches ignore patterns."""
        if isinstance(relpath, Path):
            relpath = relpath.as_posix()
        return self.get_ignore_spec().is_ignored(relpath)
