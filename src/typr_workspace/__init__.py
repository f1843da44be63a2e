"""
Typr Workspace Package

Local filesystem layer for the Typr markdown editor.

Features:
- Atomic, crash-safe document saves
- Depth-bounded folder snapshots with lazy expansion
- Polling watches that report external modification and removal
- Facade over all file/folder operations, served over HTTP
"""

from .models import (
    ChangeKind,
    ChangeEvent,
    FileEntry,
    FolderSnapshot,
    FileData,
    SaveResult,
)

from .config import WorkspaceConfig

from .exceptions import (
    ErrorKind,
    IoPhase,
    WorkspaceError,
    InvalidPathError,
    NotFoundError,
    AlreadyExistsError,
    NotDirectoryError,
    IoFailureError,
    LockFailureError,
    UserCancelledError,
    NoFileSelectedError,
    NoFolderSelectedError,
    SaveCancelledError,
)

from .atomic_writer import persist
from .tree_scanner import scan, is_markdown_file
from .watch_worker import WatchWorker, WorkerState
from .watch_registry import WatchRegistry
from .event_hub import EventHub
from .pickers import Picker, NativeDialogPicker, StaticPicker
from .facade import WorkspaceFacade


__all__ = [
    # Models
    "ChangeKind",
    "ChangeEvent",
    "FileEntry",
    "FolderSnapshot",
    "FileData",
    "SaveResult",
    # Config
    "WorkspaceConfig",
    # Exceptions
    "ErrorKind",
    "IoPhase",
    "WorkspaceError",
    "InvalidPathError",
    "NotFoundError",
    "AlreadyExistsError",
    "NotDirectoryError",
    "IoFailureError",
    "LockFailureError",
    "UserCancelledError",
    "NoFileSelectedError",
    "NoFolderSelectedError",
    "SaveCancelledError",
    # Components
    "persist",
    "scan",
    "is_markdown_file",
    "WatchWorker",
    "WorkerState",
    "WatchRegistry",
    "EventHub",
    "Picker",
    "NativeDialogPicker",
    "StaticPicker",
    # Facade
    "WorkspaceFacade",
]

__version__ = "0.1.0"
