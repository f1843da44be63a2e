"""Custom exceptions for the workspace package."""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Closed set of failure categories reported to callers."""
    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NOT_A_DIRECTORY = "not_a_directory"
    IO_FAILURE = "io_failure"
    LOCK_FAILURE = "lock_failure"
    USER_CANCELLED = "user_cancelled"


class IoPhase(Enum):
    """Filesystem step during which an I/O failure happened."""
    CREATE = "create"
    WRITE = "write"
    SYNC = "sync"
    RENAME = "rename"
    READ = "read"
    METADATA = "metadata"
    REMOVE = "remove"


class WorkspaceError(Exception):
    """Base exception for all workspace errors."""
    kind: ErrorKind = ErrorKind.IO_FAILURE

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {"error": str(self), "kind": self.kind.value}


class InvalidPathError(WorkspaceError):
    """Path has no parent, carries an invalid name, or cannot be represented."""
    kind = ErrorKind.INVALID_PATH


class NotFoundError(WorkspaceError):
    """Path does not exist."""
    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(WorkspaceError):
    """An item already exists at the destination path."""
    kind = ErrorKind.ALREADY_EXISTS


class NotDirectoryError(WorkspaceError):
    """Path exists but is not a directory."""
    kind = ErrorKind.NOT_A_DIRECTORY


class IoFailureError(WorkspaceError):
    """Filesystem call failed during a specific phase."""
    kind = ErrorKind.IO_FAILURE

    def __init__(self, message: str, phase: IoPhase, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.phase = phase
        self.cause = cause

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["phase"] = self.phase.value
        return data


class LockFailureError(WorkspaceError):
    """Watch registry lock could not be acquired."""
    kind = ErrorKind.LOCK_FAILURE


class UserCancelledError(WorkspaceError):
    """A picker dialog was dismissed without a selection."""
    kind = ErrorKind.USER_CANCELLED


class NoFileSelectedError(UserCancelledError):
    """Open-file picker was dismissed."""
    pass


class NoFolderSelectedError(UserCancelledError):
    """Open-folder picker was dismissed."""
    pass


class SaveCancelledError(UserCancelledError):
    """Save-as picker was dismissed."""
    pass
