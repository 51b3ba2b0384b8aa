"""Shared test fixtures and utilities."""

from pathlib import Path
import pytest

from gvt.context import RepositoryContext
from gvt.ops import initialize


@pytest.fixture
def initialized_ctx(tmp_path, monkeypatch):
    """Create an initialized repository in tmp_path and chdir into it."""
    monkeypatch.chdir(tmp_path)
    initialize()
    return RepositoryContext()


@pytest.fixture
def store(initialized_ctx):
    """Snapshot store of the initialized repository."""
    return initialized_ctx.store


@pytest.fixture
def write_file(tmp_path):
    """Factory fixture to write files relative to tmp_path."""
    def _write(path: str, content: str = "test content"):
        file_path = tmp_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        return file_path
    return _write


@pytest.fixture
def make_tree():
    """Factory fixture to build a directory tree from a {relpath: content} dict."""
    def _make(root: Path, files: dict):
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root
    return _make
