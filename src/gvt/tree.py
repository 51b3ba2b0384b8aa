"""Recursive tree copy with exclusion filtering.

Nothing here knows about repository layout: callers pass the exclusion
predicate explicitly, so the copy can be exercised on synthetic trees.

Link modes:
- copy: duplicate file bytes (always works)
- hardlink: share the inode with the source, falling back to copy when the
  filesystem refuses (cross-device, unsupported)

An existing destination entry is always unlinked before a file is placed, so
a file that is hard-linked elsewhere is replaced rather than written through.
"""

from __future__ import annotations
import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Literal, Optional

LinkMode = Literal["copy", "hardlink"]

logger = logging.getLogger(__name__)


def place_file(src: Path, dst: Path, link_mode: LinkMode = "copy") -> None:
    """Place a single file at dst, replacing whatever is there.

    Symbolic links are copied as links, never followed. Special files
    (FIFOs, sockets, devices) raise ``shutil.SpecialFileError``. A directory
    in the way is never removed; that raises ``IsADirectoryError``.
    """
    if dst.is_dir() and not dst.is_symlink():
        raise IsADirectoryError(f"Cannot replace directory with file: {dst}")
    if dst.is_symlink() or dst.exists():
        dst.unlink()

    if link_mode == "hardlink" and not src.is_symlink():
        try:
            os.link(src, dst)
            logger.debug("Linked %s <- %s", dst, src)
            return
        except OSError as e:
            logger.warning("Hard link failed for %s (%s), copying instead", dst, e)
    elif link_mode not in ("copy", "hardlink"):
        raise ValueError(f"Invalid link mode: {link_mode}")

    shutil.copy2(src, dst, follow_symlinks=False)
    logger.debug("Copied %s <- %s", dst, src)


def copy_tree(
    source: Path,
    destination: Path,
    exclude: Optional[Callable[[str], bool]] = None,
    link_mode: LinkMode = "copy",
) -> int:
    """Depth-first copy of source into destination.

    Args:
        source: Directory to copy from
        destination: Directory to copy into (created if absent)
        exclude: Predicate on an entry's bare name; matching entries are
            skipped at every depth, directories included
        link_mode: How files are placed, see module docstring

    Returns:
        Number of files placed

    Existing destination files with the same relative path are overwritten;
    everything else already in destination is left alone.
    """
    destination.mkdir(parents=True, exist_ok=True)
    placed = 0
    for entry in sorted(source.iterdir()):
        if exclude is not None and exclude(entry.name):
            continue
        target = destination / entry.name
        if entry.is_dir() and not entry.is_symlink():
            # A file in the way makes mkdir raise FileExistsError
            placed += copy_tree(entry, target, exclude, link_mode)
        else:
            place_file(entry, target, link_mode)
            placed += 1
    return placed


def iter_files(root: Path, exclude: Optional[Callable[[str], bool]] = None):
    """Yield POSIX paths, relative to root, of every non-directory entry.

    Uses the same exclusion rule as ``copy_tree``. Order is unspecified.
    """
    stack = [root]
    while stack:
        current = stack.pop()
        for entry in current.iterdir():
            if exclude is not None and exclude(entry.name):
                continue
            if entry.is_dir() and not entry.is_symlink():
                stack.append(entry)
            else:
                yield entry.relative_to(root).as_posix()
