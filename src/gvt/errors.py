"""Custom exceptions for gvt.

Every error carries the process exit code the CLI reports for it, so the
verb boundary can turn any failure into a status without a lookup of its own.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes, one per failure kind."""

    OK = 0
    ALREADY_INITIALIZED = 10
    FILE_NOT_FOUND = 21
    ADD_FAILED = 22
    IGNORED_PATH = 23
    OUTSIDE_REPOSITORY = 24
    DETACH_FAILED = 32
    COMMIT_FAILED = 52
    INVALID_GENERATION = 60
    CHECKOUT_FAILED = 62
    CORRUPT_POINTER = 70
    MISSING_GENERATION = 71
    HISTORY_FAILED = 72
    VERSION_FAILED = 73
    STATUS_FAILED = 74
    REPOSITORY_LOCKED = 80
    INIT_FAILED = 253
    NOT_INITIALIZED = 254


class GvtError(RuntimeError):
    """Base class for all gvt errors."""

    exit_code = ExitCode.INIT_FAILED


# Repository Errors
class NotInitializedError(GvtError):
    """No repository found."""

    exit_code = ExitCode.NOT_INITIALIZED

    def __init__(self, start=None):
        self.start = start
        super().__init__(
            "Current directory is not initialized. Please use init command to initialize."
        )


class AlreadyInitializedError(GvtError):
    """Repository root already exists."""

    exit_code = ExitCode.ALREADY_INITIALIZED

    def __init__(self, root=None):
        self.root = root
        super().__init__("Current directory is already initialized.")


class RepositoryLockedError(GvtError):
    """Another process holds the repository lock."""

    exit_code = ExitCode.REPOSITORY_LOCKED

    def __init__(self, lock_path, timeout: float):
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(
            f"Repository is locked by another gvt process (waited {timeout:g}s). "
            f"Lock file: {lock_path}"
        )


# Generation Errors
class InvalidGenerationError(GvtError):
    """Generation number unparsable or out of [0, latest]."""

    exit_code = ExitCode.INVALID_GENERATION

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid version number: {value}")


class CorruptPointerError(GvtError):
    """Pointer file missing, unreadable or not a non-negative integer."""

    exit_code = ExitCode.CORRUPT_POINTER

    def __init__(self, path, raw=None):
        self.path = path
        self.raw = raw
        detail = "missing" if raw is None else f"contains {raw!r}"
        super().__init__(f"Pointer file {path} is corrupt ({detail}).")


class MissingGenerationError(GvtError):
    """Generation directory or its message record is absent."""

    exit_code = ExitCode.MISSING_GENERATION

    def __init__(self, generation: int):
        self.generation = generation
        super().__init__(f"Generation {generation} or its message record does not exist.")


# Working Tree Errors
class TargetNotFoundError(GvtError):
    """Target file missing from disk."""

    exit_code = ExitCode.FILE_NOT_FOUND

    def __init__(self, filename):
        self.filename = filename
        super().__init__(f"File not found. File: {filename}")


class IgnoredPathError(GvtError):
    """Target matches an ignore pattern."""

    exit_code = ExitCode.IGNORED_PATH

    def __init__(self, filename, internal: bool = False):
        self.filename = filename
        self.internal = internal
        if internal:
            message = f"Path is reserved for repository metadata. File: {filename}"
        else:
            message = f"Path is ignored by .gvtignore (use --force to add anyway). File: {filename}"
        super().__init__(message)


class OutsideRepositoryError(GvtError):
    """Target lies outside the working tree."""

    exit_code = ExitCode.OUTSIDE_REPOSITORY

    def __init__(self, filename):
        self.filename = filename
        super().__init__(f"Path is outside the repository. File: {filename}")


# Storage Errors
class StorageIOError(GvtError):
    """Copy, read or write failure from the underlying filesystem."""

    exit_code = ExitCode.INIT_FAILED

    def __init__(self, action: str, path):
        self.action = action
        self.path = path
        super().__init__(f"Failed to {action}: {path}")
