"""Tests for recursive tree copy."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from gvt.tree import copy_tree, iter_files, place_file


def skip_named(*names):
    return lambda name: name in names


class TestCopyTree:
    """Test depth-first copy with an exclusion predicate."""

    def test_copies_nested_structure(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {
            "a.txt": "alpha",
            "sub/b.txt": "beta",
            "sub/deeper/c.bin": "gamma",
        })
        dst = tmp_path / "dst"

        placed = copy_tree(src, dst)

        assert placed == 3
        assert (dst / "a.txt").read_text() == "alpha"
        assert (dst / "sub" / "b.txt").read_text() == "beta"
        assert (dst / "sub" / "deeper" / "c.bin").read_text() == "gamma"

    def test_copies_bytes_exactly(self, tmp_path):
        src = tmp_path / "src"
        src.mkdir()
        payload = bytes(range(256)) * 4
        (src / "blob.bin").write_bytes(payload)

        copy_tree(src, tmp_path / "dst")

        assert (tmp_path / "dst" / "blob.bin").read_bytes() == payload

    def test_exclude_applies_at_every_depth(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {
            "keep.txt": "1",
            "skip": "top-level file",
            "sub/skip/inner.txt": "nested dir named skip",
            "sub/keep.txt": "2",
        })
        dst = tmp_path / "dst"

        copy_tree(src, dst, exclude=skip_named("skip"))

        assert (dst / "keep.txt").exists()
        assert (dst / "sub" / "keep.txt").exists()
        assert not (dst / "skip").exists()
        assert not (dst / "sub" / "skip").exists()

    def test_overwrites_and_leaves_extras(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {"a.txt": "new"})
        dst = make_tree(tmp_path / "dst", {"a.txt": "old", "extra.txt": "mine"})

        copy_tree(src, dst)

        assert (dst / "a.txt").read_text() == "new"
        assert (dst / "extra.txt").read_text() == "mine"

    def test_empty_directories_are_created(self, tmp_path):
        src = tmp_path / "src"
        (src / "empty").mkdir(parents=True)

        assert copy_tree(src, tmp_path / "dst") == 0
        assert (tmp_path / "dst" / "empty").is_dir()

    def test_directory_in_the_way_is_not_removed(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {"name": "file"})
        dst = make_tree(tmp_path / "dst", {"name/precious.txt": "keep me"})

        with pytest.raises(IsADirectoryError):
            copy_tree(src, dst)
        assert (dst / "name" / "precious.txt").read_text() == "keep me"

    def test_symlinks_are_copied_as_links(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {"target.txt": "data"})
        (src / "link.txt").symlink_to("target.txt")
        dst = tmp_path / "dst"

        copy_tree(src, dst)

        assert (dst / "link.txt").is_symlink()
        assert os.readlink(dst / "link.txt") == "target.txt"


class TestLinkModes:
    """Test hardlink placement and its fallback."""

    def test_hardlink_shares_inode(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {"a.txt": "shared"})
        dst = tmp_path / "dst"

        copy_tree(src, dst, link_mode="hardlink")

        assert (dst / "a.txt").samefile(src / "a.txt")

    def test_hardlink_falls_back_to_copy(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {"a.txt": "data"})
        dst = tmp_path / "dst"

        with patch("gvt.tree.os.link", side_effect=OSError("cross-device link")):
            copy_tree(src, dst, link_mode="hardlink")

        assert (dst / "a.txt").read_text() == "data"
        assert not (dst / "a.txt").samefile(src / "a.txt")

    def test_replacing_linked_file_leaves_source_intact(self, tmp_path, make_tree):
        src = make_tree(tmp_path / "src", {"a.txt": "original"})
        dst = tmp_path / "dst"
        copy_tree(src, dst, link_mode="hardlink")

        update = tmp_path / "update.txt"
        update.write_text("changed")
        place_file(update, dst / "a.txt")

        assert (dst / "a.txt").read_text() == "changed"
        assert (src / "a.txt").read_text() == "original"

    def test_invalid_link_mode(self, tmp_path):
        src = tmp_path / "a.txt"
        src.write_text("x")

        with pytest.raises(ValueError, match="Invalid link mode"):
            place_file(src, tmp_path / "b.txt", "symlink")


class TestIterFiles:
    """Test file enumeration."""

    def test_lists_relative_posix_paths(self, tmp_path, make_tree):
        root = make_tree(tmp_path / "root", {
            "a.txt": "1",
            "sub/b.txt": "2",
            "sub/skip": "3",
        })

        files = sorted(iter_files(root, exclude=skip_named("skip")))

        assert files == ["a.txt", "sub/b.txt"]
