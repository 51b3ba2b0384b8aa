"""Snapshot store: the on-disk generation repository.

Layout (inside the working tree):

    .gvt/.latest        decimal number of the highest finalized generation
    .gvt/.active        decimal number of the generation the tree reflects
    .gvt/<N>/           full copy of the tracked tree at generation N
    .gvt/<N>/.message   commit message of generation N

Crash safety rests on ordering, not on transactions: a new generation is
copied first, its message is written next, and only then do the pointers
move. A crash anywhere before the pointer write leaves an orphan directory
numbered latest+1 that nothing references; the next ``begin_generation``
discards it.

Concurrent invocations are serialized by ``lock()``, an advisory
portalocker lock on .gvt/.lock. The store never takes it on its own.
"""

import contextlib
import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import portalocker

from .constants import (
    ACTIVE_FILE,
    GVT_DIR,
    INIT_MESSAGE,
    LATEST_FILE,
    LOCK_FILE,
    MESSAGE_FILE,
)
from .errors import (
    AlreadyInitializedError,
    CorruptPointerError,
    InvalidGenerationError,
    MissingGenerationError,
    NotInitializedError,
    RepositoryLockedError,
    StorageIOError,
)
from .ignore import is_internal
from .tree import LinkMode, copy_tree, iter_files, place_file
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r"^[0-9]+$")


@contextlib.contextmanager
def _io_guard(action: str, path: Path) -> Iterator[None]:
    """Re-raise filesystem failures as StorageIOError."""
    try:
        yield
    except OSError as e:
        raise StorageIOError(action, path) from e


def locate(start: Optional[Path] = None) -> Path:
    """Find the repository root by walking up from start.

    Returns:
        Path to the .gvt directory

    Raises:
        NotInitializedError: If no .gvt directory exists in start or any parent
    """
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / GVT_DIR).is_dir():
            return candidate / GVT_DIR
    raise NotInitializedError(start)


@dataclass(frozen=True)
class PendingGeneration:
    """A copied generation that has not been finalized yet."""
    number: int
    path: Path


class SnapshotStore:
    """Primitives over the generation directories and pointer files."""

    def __init__(self, root: Path, link_mode: LinkMode = "copy"):
        """
        Args:
            root: The .gvt directory
            link_mode: How ``begin_generation`` places unchanged files
        """
        self.root = Path(root)
        self.link_mode = link_mode

    @classmethod
    def open(cls, start: Optional[Path] = None, link_mode: LinkMode = "copy") -> "SnapshotStore":
        """Open the repository containing start."""
        return cls(locate(start), link_mode=link_mode)

    @classmethod
    def create(cls, work_tree: Path) -> "SnapshotStore":
        """Create a repository with generation 0 in work_tree.

        Raises:
            AlreadyInitializedError: If work_tree already has a .gvt entry
        """
        root = Path(work_tree) / GVT_DIR
        if root.exists():
            raise AlreadyInitializedError(root)

        store = cls(root)
        with _io_guard("initialize repository", root):
            root.mkdir(parents=True)
            generation_zero = store.generation_path(0)
            generation_zero.mkdir()
            store.finalize_generation(PendingGeneration(0, generation_zero), INIT_MESSAGE)
        logger.info("Initialized repository at %s", root)
        return store

    @property
    def work_tree(self) -> Path:
        """Directory whose files are versioned."""
        return self.root.parent

    def generation_path(self, generation: int) -> Path:
        return self.root / str(generation)

    # ============= Pointers =============

    def _read_pointer(self, name: str) -> int:
        path = self.root / name
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise CorruptPointerError(path) from None
        except OSError as e:
            raise StorageIOError("read pointer", path) from e

        try:
            text = raw.decode("utf-8").strip()
        except UnicodeDecodeError:
            raise CorruptPointerError(path, raw) from None
        if not _DECIMAL.match(text):
            raise CorruptPointerError(path, raw)
        return int(text)

    def _write_pointer(self, name: str, generation: int) -> None:
        atomic_write_text(self.root / name, str(generation))

    def latest_generation(self) -> int:
        """Number of the highest finalized generation."""
        return self._read_pointer(LATEST_FILE)

    def active_generation(self) -> int:
        """Number of the generation the working tree was last restored to."""
        return self._read_pointer(ACTIVE_FILE)

    def set_active_generation(self, generation: int) -> None:
        """Overwrite the active pointer. Callers validate the range."""
        with _io_guard("write pointer", self.root / ACTIVE_FILE):
            self._write_pointer(ACTIVE_FILE, generation)

    # ============= Generation lifecycle =============

    def begin_generation(self, from_generation: int) -> PendingGeneration:
        """Allocate generation from_generation+1 as a copy of from_generation.

        Repository-internal entries are skipped at every depth. An orphan
        directory left by an interrupted earlier attempt is discarded first.

        Raises:
            MissingGenerationError: If from_generation does not exist
            InvalidGenerationError: If the new number is already finalized
            StorageIOError: If the copy fails
        """
        source = self.generation_path(from_generation)
        if not source.is_dir():
            raise MissingGenerationError(from_generation)

        number = from_generation + 1
        target = self.generation_path(number)
        if target.exists() and number <= self.latest_generation():
            raise InvalidGenerationError(number)

        with _io_guard("create generation", target):
            if target.exists():
                logger.warning("Discarding orphan generation %d left by an interrupted operation", number)
                shutil.rmtree(target)
            target.mkdir()
            placed = copy_tree(source, target, exclude=is_internal, link_mode=self.link_mode)

        logger.debug("Generation %d copied from %d (%d files, %s)", number, from_generation, placed, self.link_mode)
        return PendingGeneration(number, target)

    def finalize_generation(self, handle: PendingGeneration, message: str) -> None:
        """Attach the message, then advance latest and active to handle.number."""
        with _io_guard("finalize generation", handle.path):
            atomic_write_text(handle.path / MESSAGE_FILE, message)
            self._write_pointer(LATEST_FILE, handle.number)
            self._write_pointer(ACTIVE_FILE, handle.number)
        logger.info("Finalized generation %d", handle.number)

    def restore(self, generation: int, destination: Path) -> int:
        """Copy a generation's content into destination.

        Additive-overwrite: same-path files are replaced, files absent from
        the generation are left untouched.

        Returns:
            Number of files written
        """
        source = self.generation_path(generation)
        if not source.is_dir():
            raise MissingGenerationError(generation)

        with _io_guard("restore generation", destination):
            placed = copy_tree(source, Path(destination), exclude=is_internal)
        logger.info("Restored generation %d into %s (%d files)", generation, destination, placed)
        return placed

    def read_message(self, generation: int) -> str:
        """Full message text of a generation."""
        path = self.generation_path(generation) / MESSAGE_FILE
        if not path.is_file():
            raise MissingGenerationError(generation)
        with _io_guard("read message", path):
            data = path.read_bytes()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageIOError("decode message", path) from e

    # ============= File-level access =============

    def contains(self, generation: int, relpath: str) -> bool:
        """Whether a file exists at relpath inside a generation."""
        path = self.generation_path(generation) / relpath
        return path.is_symlink() or path.is_file()

    def list_files(self, generation: int) -> List[str]:
        """Sorted POSIX paths of every file in a generation."""
        source = self.generation_path(generation)
        if not source.is_dir():
            raise MissingGenerationError(generation)
        with _io_guard("list generation", source):
            return sorted(iter_files(source, exclude=is_internal))

    def put_file(self, handle: PendingGeneration, relpath: str, source: Path) -> None:
        """Write source's current content into a pending generation."""
        dst = handle.path / relpath
        with _io_guard("store file", dst):
            dst.parent.mkdir(parents=True, exist_ok=True)
            # Replace, never write through: dst may be hard-linked to an older generation
            place_file(Path(source).resolve(), dst, "copy")

    def remove_file(self, handle: PendingGeneration, relpath: str) -> None:
        """Delete relpath from a pending generation, pruning emptied directories."""
        dst = handle.path / relpath
        with _io_guard("remove file", dst):
            dst.unlink(missing_ok=True)
            parent = dst.parent
            while parent != handle.path and not any(parent.iterdir()):
                parent.rmdir()
                parent = parent.parent

    @contextlib.contextmanager
    def lock(self, timeout: float = 30.0) -> Iterator[None]:
        """Hold the repository's exclusive advisory lock.

        Raises:
            RepositoryLockedError: If the lock is not acquired within timeout
        """
        lock_path = self.root / LOCK_FILE
        try:
            with portalocker.Lock(str(lock_path), "w", timeout=timeout):
                yield
        except portalocker.exceptions.LockException as e:
            raise RepositoryLockedError(lock_path, timeout) from e
