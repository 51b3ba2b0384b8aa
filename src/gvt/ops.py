"""Core operations for gvt.

Each verb is a short transaction over the snapshot store. Mutating verbs
hold the repository lock for their whole transaction and create at most one
generation; when the requested state already holds (file already tracked,
file not tracked) they succeed without creating anything.

``dispatch`` is the verb boundary: every GvtError, filesystem failure and
undecodable repository file is turned into an OperationResult there, so
nothing escapes to the caller.
"""

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

from .config import RepoConfig, save_config
from .context import RepositoryContext
from .core import ChangeType, StatusEntry, StatusReport, scan_files
from .errors import (
    ExitCode,
    GvtError,
    IgnoredPathError,
    InvalidGenerationError,
    StorageIOError,
    TargetNotFoundError,
)
from .ignore import has_internal_component
from .service_types import OperationResult
from .store import SnapshotStore
from .utils import compute_digest

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"^[+-]?[0-9]+$")


class Verb(str, Enum):
    """Commands understood by the engine."""

    INIT = "init"
    ADD = "add"
    DETACH = "detach"
    COMMIT = "commit"
    CHECKOUT = "checkout"
    HISTORY = "history"
    VERSION = "version"
    STATUS = "status"


# ============= Generation helpers =============

def _parse_generation(value: Union[int, str]) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    if not _INTEGER.match(text):
        raise InvalidGenerationError(value)
    return int(text)


def _validate_generation(store: SnapshotStore, value: Union[int, str]) -> int:
    """Parse value and check it lies in [0, latest]."""
    number = _parse_generation(value)
    if number < 0 or number > store.latest_generation():
        raise InvalidGenerationError(number)
    return number


def _is_tracked(store: SnapshotStore, generation: int, relpath: str) -> bool:
    return not has_internal_component(relpath) and store.contains(generation, relpath)


def _summary(message: str) -> str:
    return (message.splitlines() or [""])[0]


# ============= Verbs =============

def initialize(path: Optional[Path] = None) -> OperationResult:
    """Create a repository with generation 0 in path (default: cwd)."""
    target = Path(path) if path else Path.cwd()
    target.mkdir(parents=True, exist_ok=True)

    store = SnapshotStore.create(target)
    save_config(RepoConfig(), store.root)
    return OperationResult(
        message="Current directory initialized successfully.",
        generation=0,
        created=True,
    )


def track(
    file: Union[str, Path],
    message: Optional[str] = None,
    force: bool = False,
    start: Optional[Path] = None,
) -> OperationResult:
    """Add a file to the tracked tree as a new generation."""
    ctx = RepositoryContext(start)
    relpath = ctx.resolve(file)
    if has_internal_component(relpath):
        raise IgnoredPathError(file, internal=True)

    source = ctx.absolute(relpath)
    if not source.is_file():
        raise TargetNotFoundError(file)
    if not force and ctx.should_ignore(relpath):
        raise IgnoredPathError(file)

    store = ctx.store
    default = f"File added successfully. File: {file}"
    with store.lock(ctx.config.lock_timeout):
        latest = store.latest_generation()
        if store.contains(latest, relpath):
            return OperationResult(message=f"File already added. File: {file}", generation=latest)

        handle = store.begin_generation(latest)
        store.put_file(handle, relpath, source)
        store.finalize_generation(handle, message if message is not None else default)

    logger.info("Tracked %s in generation %d", relpath, handle.number)
    return OperationResult(message=default, generation=handle.number, created=True)


def untrack(
    file: Union[str, Path],
    message: Optional[str] = None,
    start: Optional[Path] = None,
) -> OperationResult:
    """Remove a file from the tracked tree as a new generation.

    The working copy is left alone.
    """
    ctx = RepositoryContext(start)
    relpath = ctx.resolve(file)

    store = ctx.store
    default = f"File detached successfully. File: {file}"
    with store.lock(ctx.config.lock_timeout):
        latest = store.latest_generation()
        if not _is_tracked(store, latest, relpath):
            return OperationResult(message=f"File is not added to gvt. File: {file}", generation=latest)

        handle = store.begin_generation(latest)
        store.remove_file(handle, relpath)
        store.finalize_generation(handle, message if message is not None else default)

    logger.info("Detached %s in generation %d", relpath, handle.number)
    return OperationResult(message=default, generation=handle.number, created=True)


def update(
    file: Union[str, Path],
    message: Optional[str] = None,
    start: Optional[Path] = None,
) -> OperationResult:
    """Record a tracked file's current content as a new generation."""
    ctx = RepositoryContext(start)
    relpath = ctx.resolve(file)
    source = ctx.absolute(relpath)
    if not source.is_file():
        raise TargetNotFoundError(file)

    store = ctx.store
    default = f"File committed successfully. File: {file}"
    with store.lock(ctx.config.lock_timeout):
        latest = store.latest_generation()
        if not _is_tracked(store, latest, relpath):
            return OperationResult(message=f"File is not added to gvt. File: {file}", generation=latest)

        handle = store.begin_generation(latest)
        store.put_file(handle, relpath, source)
        store.finalize_generation(handle, message if message is not None else default)

    logger.info("Committed %s in generation %d", relpath, handle.number)
    return OperationResult(message=default, generation=handle.number, created=True)


def _clean_for_restore(ctx: RepositoryContext, store: SnapshotStore, target: int) -> int:
    """Remove working files tracked in the active generation but not in target.

    Files whose content no longer matches the active generation are kept.
    """
    active = store.active_generation()
    wanted = set(store.list_files(target))
    active_dir = store.generation_path(active)
    removed = 0
    for relpath in store.list_files(active):
        if relpath in wanted:
            continue
        working = ctx.absolute(relpath)
        if not working.is_file():
            continue
        if compute_digest(working) != compute_digest(active_dir / relpath):
            logger.warning("Keeping %s: it differs from generation %d", relpath, active)
            continue
        working.unlink()
        removed += 1
        logger.debug("Removed %s (absent from generation %d)", relpath, target)
    return removed


def checkout(
    generation: Union[int, str],
    clean: Optional[bool] = None,
    start: Optional[Path] = None,
) -> OperationResult:
    """Restore the working tree to a generation and make it active.

    Args:
        generation: Generation number, as int or decimal string
        clean: Also remove files the target lacks; None uses restore_mode
        start: Directory to locate the repository from
    """
    ctx = RepositoryContext(start)
    store = ctx.store
    if clean is None:
        clean = ctx.config.restore_mode == "clean"

    with store.lock(ctx.config.lock_timeout):
        number = _validate_generation(store, generation)
        if clean:
            removed = _clean_for_restore(ctx, store, number)
            logger.info("Clean checkout removed %d files", removed)
        store.restore(number, ctx.root)
        store.set_active_generation(number)

    return OperationResult(message=f"Checkout successful for version: {number}", generation=number)


def history(last: Optional[int] = None, start: Optional[Path] = None) -> OperationResult:
    """List `N: summary` lines from latest downward.

    Args:
        last: Number of generations to list; None lists all of them
        start: Directory to locate the repository from
    """
    store = RepositoryContext(start).store
    latest = store.latest_generation()
    count = latest + 1 if last is None else max(0, min(last, latest + 1))

    lines = [
        f"{number}: {_summary(store.read_message(number))}"
        for number in range(latest, latest - count, -1)
    ]
    return OperationResult(message="\n".join(lines), lines=lines, generation=latest)


def version(generation: Optional[Union[int, str]] = None, start: Optional[Path] = None) -> OperationResult:
    """Show a generation's message; the active generation by default."""
    store = RepositoryContext(start).store
    if generation is None:
        generation = store.active_generation()
    number = _validate_generation(store, generation)

    text = store.read_message(number)
    return OperationResult(message=f"Version: {number}\n{text}", generation=number)


def status(start: Optional[Path] = None) -> OperationResult:
    """Compare the working tree with the latest generation by digest."""
    ctx = RepositoryContext(start)
    store = ctx.store
    latest = store.latest_generation()
    active = store.active_generation()

    generation_dir = store.generation_path(latest)
    # Symlinks are kept opaque; nothing to compare
    tracked = [p for p in store.list_files(latest) if not (generation_dir / p).is_symlink()]
    stored = scan_files(tracked, generation_dir)
    working = scan_files(tracked, ctx.root)

    report = StatusReport(latest=latest, active=active)
    for path in tracked:
        stored_info = stored.get(path)
        if stored_info is None:
            continue
        working_info = working.get(path)
        if working_info is None:
            change = ChangeType.MISSING
        elif working_info.digest != stored_info.digest:
            change = ChangeType.MODIFIED
        else:
            change = ChangeType.UNCHANGED
        report.entries.append(
            StatusEntry(path=path, change_type=change, stored=stored_info, working=working_info)
        )

    counts = report.counts()
    message = (
        f"{len(report.entries)} tracked, "
        f"{counts[ChangeType.MODIFIED]} modified, {counts[ChangeType.MISSING]} missing"
    )
    return OperationResult(message=message, generation=latest, report=report)


# ============= Dispatch =============

HANDLERS: Dict[Verb, Callable[..., OperationResult]] = {
    Verb.INIT: initialize,
    Verb.ADD: track,
    Verb.DETACH: untrack,
    Verb.COMMIT: update,
    Verb.CHECKOUT: checkout,
    Verb.HISTORY: history,
    Verb.VERSION: version,
    Verb.STATUS: status,
}

# Exit code and message prefix when a verb hits a filesystem failure
_IO_FAILURES: Dict[Verb, Tuple[ExitCode, str]] = {
    Verb.INIT: (ExitCode.INIT_FAILED, "Underlying system problem."),
    Verb.ADD: (ExitCode.ADD_FAILED, "File cannot be added."),
    Verb.DETACH: (ExitCode.DETACH_FAILED, "File cannot be detached."),
    Verb.COMMIT: (ExitCode.COMMIT_FAILED, "File cannot be committed."),
    Verb.CHECKOUT: (ExitCode.CHECKOUT_FAILED, "Checkout cannot be completed."),
    Verb.HISTORY: (ExitCode.HISTORY_FAILED, "History cannot be read."),
    Verb.VERSION: (ExitCode.VERSION_FAILED, "Version cannot be read."),
    Verb.STATUS: (ExitCode.STATUS_FAILED, "Status cannot be computed."),
}


def dispatch(verb: Union[Verb, str], **arguments) -> OperationResult:
    """Run one verb and report its outcome.

    GvtError, OSError and undecodable repository files never escape.
    """
    verb = Verb(verb)
    handler = HANDLERS[verb]
    try:
        return handler(**arguments)
    except (StorageIOError, OSError, UnicodeError) as e:
        code, text = _IO_FAILURES[verb]
        logger.error("%s failed: %s", verb.value, e, exc_info=True)
        message = f"{text} See ERR for details."
        if arguments.get("file") is not None:
            message += f" File: {arguments['file']}"
        return OperationResult(code=code, message=message)
    except GvtError as e:
        logger.debug("%s rejected: %s", verb.value, e)
        return OperationResult(code=e.exit_code, message=str(e))
