"""Request/response operations offered to the editor's presentation layer."""

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

from . import atomic_writer, tree_scanner
from .config import WorkspaceConfig
from .event_hub import EventHub
from .exceptions import (
    AlreadyExistsError,
    InvalidPathError,
    IoFailureError,
    IoPhase,
    NoFileSelectedError,
    NoFolderSelectedError,
    NotDirectoryError,
    NotFoundError,
    SaveCancelledError,
)
from .models import FileData, FileEntry, FolderSnapshot, SaveResult
from .pickers import NativeDialogPicker, Picker
from .watch_registry import WatchRegistry

logger = logging.getLogger(__name__)


def _name_of(path: Path, fallback: str) -> str:
    name = path.name
    if not name:
        return fallback
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return fallback
    return name


def _path_str(path: Path) -> str:
    value = str(path)
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidPathError(f"Invalid path encoding: {value!r}") from None
    return value


def _read_text(path: Path) -> str:
    # newline="" keeps the file's line endings untouched
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise IoFailureError(f"Failed to read file: {e}", IoPhase.READ, e) from e


class WorkspaceFacade:
    """
    Entry point for every filesystem operation the editor performs.

    Paths arrive already resolved, either from a picker or from tree
    navigation. One-shot operations go straight to the atomic writer or the
    tree scanner; watch operations go through the injected registry.
    """

    def __init__(
        self,
        config: Optional[WorkspaceConfig] = None,
        registry: Optional[WatchRegistry] = None,
        picker: Optional[Picker] = None,
        hub: Optional[EventHub] = None,
    ):
        """
        Initialize the facade.

        Args:
            config: Workspace configuration
            registry: Watch registry; built around ``hub`` when omitted
            picker: Dialog provider for open/save-as/open-folder
            hub: Event sink used when a registry has to be built
        """
        self.config = config or WorkspaceConfig()
        self.hub = hub or EventHub(self.config.subscriber_queue_size)
        self.registry = registry or WatchRegistry(
            self.hub.publish,
            poll_interval=self.config.poll_interval,
            lock_timeout=self.config.lock_timeout_seconds,
        )
        self.picker = picker or NativeDialogPicker(timeout=self.config.picker_timeout_seconds)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def open_file(self) -> FileData:
        """Ask the user for a document and read it."""
        selected = self.picker.pick_file(self.config.open_file_extensions)
        if not selected:
            raise NoFileSelectedError("No file selected")
        path = Path(selected)
        return FileData(path=_path_str(path), content=_read_text(path), name=_name_of(path, "Untitled"))

    def read_file(self, path: str) -> FileData:
        """Read a document's full text."""
        file_path = Path(path)
        if not file_path.exists():
            raise NotFoundError(f"File does not exist: {path}")
        return FileData(path=path, content=_read_text(file_path), name=_name_of(file_path, "Untitled"))

    def save_file(self, path: str, content: str) -> None:
        """Atomically replace a document's content."""
        atomic_writer.persist(path, content, self.config.temp_marker)
        logger.debug(f"Saved {path} ({len(content)} chars)")

    def save_file_as(self, content: str) -> SaveResult:
        """
        Ask the user for a destination and save there.

        A chosen name without extension gets ``.md`` appended.
        """
        selected = self.picker.save_file(self.config.default_save_name, ("md",))
        if not selected:
            raise SaveCancelledError("Save cancelled")
        path = Path(selected)
        if not path.suffix:
            path = path.with_suffix(".md")
        atomic_writer.persist(path, content, self.config.temp_marker)
        logger.info(f"Saved document as {path}")
        return SaveResult(path=_path_str(path), name=_name_of(path, "Untitled.md"))

    def create_file(self, path: str, content: Optional[str] = None) -> FileData:
        """Create a new document; parents are created as needed."""
        file_path = Path(path)
        if file_path.exists():
            raise AlreadyExistsError(f"File already exists: {path}")
        text = content or ""
        atomic_writer.persist(file_path, text, self.config.temp_marker)
        return FileData(path=path, content=text, name=_name_of(file_path, "Untitled"))

    # ------------------------------------------------------------------
    # Folders and tree
    # ------------------------------------------------------------------

    def open_folder(self) -> FolderSnapshot:
        """Ask the user for a folder and snapshot it two levels deep."""
        selected = self.picker.pick_folder()
        if not selected:
            raise NoFolderSelectedError("No folder selected")
        return self.snapshot_folder(selected)

    def snapshot_folder(self, path: str) -> FolderSnapshot:
        """Snapshot an already chosen folder with the open-folder depth."""
        folder = Path(path)
        if not folder.exists():
            raise NotFoundError(f"Directory does not exist: {path}")
        if not folder.is_dir():
            raise NotDirectoryError(f"Path is not a directory: {path}")
        entries = tree_scanner.scan(
            folder, 0, self.config.open_folder_depth, self.config.markdown_extensions
        )
        logger.info(f"Opened folder {folder} ({len(entries)} top-level entries)")
        return FolderSnapshot(path=_path_str(folder), name=_name_of(folder, "Folder"), entries=entries)

    def read_directory(self, path: str) -> List[FileEntry]:
        """List a directory one level deep, for lazy expansion."""
        dir_path = Path(path)
        if not dir_path.exists():
            raise NotFoundError(f"Directory does not exist: {path}")
        if not dir_path.is_dir():
            raise NotDirectoryError(f"Path is not a directory: {path}")
        return tree_scanner.scan(
            dir_path, 0, self.config.expand_depth, self.config.markdown_extensions
        )

    def create_folder(self, path: str) -> FileEntry:
        """Create a folder, including missing parents."""
        folder = Path(path)
        if folder.exists():
            raise AlreadyExistsError(f"Folder already exists: {path}")
        try:
            folder.mkdir(parents=True)
        except FileExistsError as e:
            raise AlreadyExistsError(f"Folder already exists: {path}") from e
        except OSError as e:
            raise IoFailureError(f"Failed to create folder: {e}", IoPhase.CREATE, e) from e
        except ValueError as e:
            raise InvalidPathError(f"Invalid folder path: {e}") from e
        return FileEntry(
            name=_name_of(folder, "New Folder"),
            path=path,
            is_dir=True,
            is_markdown=False,
            children=[],
        )

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def rename(self, old_path: str, new_name: str) -> str:
        """
        Rename a file or folder within its directory.

        Returns:
            The new path
        """
        old = Path(old_path)
        if not old.exists():
            raise NotFoundError(f"Item does not exist: {old_path}")
        if not new_name or any(c in new_name for c in ("/", "\\", "\0")):
            raise InvalidPathError(f"Invalid name: {new_name!r}")
        if new_name in (".", ".."):
            raise InvalidPathError(f"Invalid name: {new_name!r}")

        new_path = old.parent / new_name
        if new_path.exists():
            raise AlreadyExistsError(f"An item with that name already exists: {new_name}")
        try:
            os.rename(old, new_path)
        except OSError as e:
            raise IoFailureError(f"Failed to rename: {e}", IoPhase.RENAME, e) from e
        except ValueError as e:
            raise InvalidPathError(f"Invalid path: {e}") from e
        logger.info(f"Renamed {old} -> {new_path}")
        return _path_str(new_path)

    def delete(self, path: str) -> None:
        """Delete a file, or a folder with everything in it."""
        item = Path(path)
        if not item.exists() and not item.is_symlink():
            raise NotFoundError(f"Item does not exist: {path}")
        try:
            if item.is_dir() and not item.is_symlink():
                shutil.rmtree(item)
            else:
                item.unlink()
        except OSError as e:
            raise IoFailureError(f"Failed to delete: {e}", IoPhase.REMOVE, e) from e
        logger.info(f"Deleted {item}")

    def move(self, source_path: str, target_dir: str) -> str:
        """
        Move a file or folder into another directory, keeping its name.

        Returns:
            The new path
        """
        source = Path(source_path)
        target_directory = Path(target_dir)
        if not source.exists():
            raise NotFoundError(f"Source does not exist: {source_path}")
        if not target_directory.is_dir():
            raise NotDirectoryError(f"Target is not a directory: {target_dir}")
        if not source.name:
            raise InvalidPathError(f"Cannot get file name: {source_path}")

        new_path = target_directory / source.name
        if new_path.exists():
            raise AlreadyExistsError(
                "An item with that name already exists in the target location"
            )
        try:
            os.rename(source, new_path)
        except OSError as e:
            raise IoFailureError(f"Failed to move: {e}", IoPhase.RENAME, e) from e
        except ValueError as e:
            raise InvalidPathError(f"Invalid path: {e}") from e
        logger.info(f"Moved {source} -> {new_path}")
        return _path_str(new_path)

    # ------------------------------------------------------------------
    # Watches
    # ------------------------------------------------------------------

    def start_watch(self, path: str) -> None:
        """Watch a file for external changes; no-op if already watched."""
        self.registry.start(path)

    def stop_watch(self, path: str) -> None:
        """Stop watching a file; no-op if not watched."""
        self.registry.stop(path)

    def stop_all_watches(self) -> None:
        self.registry.stop_all()

    def watched_paths(self) -> List[str]:
        return self.registry.watched_paths()

    def close(self) -> None:
        """Release background resources."""
        self.stop_all_watches()
