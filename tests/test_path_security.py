"""Tests for working-tree path resolution."""

import os

import pytest

from gvt.context import RepositoryContext
from gvt.errors import NotInitializedError, OutsideRepositoryError


class TestResolve:
    """Test RepositoryContext.resolve."""

    def test_relative_from_root(self, initialized_ctx):
        assert initialized_ctx.resolve("a.txt") == "a.txt"

    def test_relative_from_subdirectory(self, initialized_ctx, tmp_path, monkeypatch):
        (tmp_path / "src" / "pkg").mkdir(parents=True)
        monkeypatch.chdir(tmp_path / "src" / "pkg")

        assert initialized_ctx.resolve("mod.py") == "src/pkg/mod.py"
        assert initialized_ctx.resolve("../top.py") == "src/top.py"

    def test_absolute_inside(self, initialized_ctx, tmp_path):
        assert initialized_ctx.resolve(tmp_path / "docs" / "a.md") == "docs/a.md"

    def test_traversal_outside(self, initialized_ctx):
        with pytest.raises(OutsideRepositoryError):
            initialized_ctx.resolve("../escape.txt")

    def test_root_itself(self, initialized_ctx):
        with pytest.raises(OutsideRepositoryError):
            initialized_ctx.resolve(".")

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlink_keeps_own_name(self, initialized_ctx, tmp_path):
        (tmp_path / "target.txt").write_text("x")
        (tmp_path / "alias.txt").symlink_to(tmp_path / "target.txt")

        assert initialized_ctx.resolve("alias.txt") == "alias.txt"

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_directory_outside(self, initialized_ctx, tmp_path):
        outside = tmp_path.parent / f"{tmp_path.name}-outside"
        outside.mkdir()
        (tmp_path / "link").symlink_to(outside, target_is_directory=True)

        with pytest.raises(OutsideRepositoryError):
            initialized_ctx.resolve("link/secret.txt")


class TestDiscovery:
    """Test locating the repository."""

    def test_from_subdirectory(self, initialized_ctx, tmp_path):
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        ctx = RepositoryContext(nested)

        assert ctx.root == initialized_ctx.root

    def test_not_initialized(self, tmp_path):
        with pytest.raises(NotInitializedError):
            RepositoryContext(tmp_path)
