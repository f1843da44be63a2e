"""Crash-safe replacement of a file's content."""

import logging
import os
import time
from pathlib import Path
from typing import Union

from .exceptions import InvalidPathError, IoFailureError, IoPhase

logger = logging.getLogger(__name__)

DEFAULT_TEMP_MARKER = "kea"


def temp_path_for(target: Path, marker: str = DEFAULT_TEMP_MARKER) -> Path:
    """
    Build the hidden temporary sibling used while saving ``target``.

    The nanosecond timestamp keeps concurrent saves of one file apart.
    """
    name = target.name or "document"
    return target.parent / f".{name}.{marker}.{time.time_ns()}.tmp"


def _discard(temp_path: Path) -> None:
    try:
        temp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove temp file {temp_path}: {e}")


def persist(
    path: Union[str, Path],
    content: str,
    temp_marker: str = DEFAULT_TEMP_MARKER,
) -> None:
    """
    Atomically create or replace ``path`` with ``content``.

    Readers (and a crash at any point) observe either the previous full
    content or the new full content, never a truncated file.

    Args:
        path: Target file path
        content: Full text to store, written as UTF-8 without newline translation
        temp_marker: Reserved marker embedded in the temporary file name

    Raises:
        InvalidPathError: If the path has no parent or file name component,
            or contains a null byte
        IoFailureError: If creating, writing, syncing or renaming fails
    """
    target = Path(path)
    if not str(path) or not target.name or target.parent == target:
        raise InvalidPathError(f"Invalid file path: missing parent directory: {path!r}")
    if "\0" in str(path):
        raise InvalidPathError(f"Invalid file path: embedded null byte: {path!r}")

    parent = target.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoFailureError(
                f"Failed to create parent directory: {e}", IoPhase.CREATE, e
            ) from e

    try:
        data = content.encode("utf-8")
    except UnicodeEncodeError as e:
        raise IoFailureError(f"Content is not valid UTF-8: {e}", IoPhase.WRITE, e) from e

    temp_path = temp_path_for(target, temp_marker)

    try:
        handle = open(temp_path, "xb")
    except OSError as e:
        raise IoFailureError(f"Failed to create temp file: {e}", IoPhase.CREATE, e) from e
    except ValueError as e:
        raise InvalidPathError(f"Invalid file path: {e}") from e

    phase = IoPhase.WRITE
    try:
        with handle:
            handle.write(data)
            handle.flush()
            phase = IoPhase.SYNC
            os.fsync(handle.fileno())
    except OSError as e:
        _discard(temp_path)
        verb = "write" if phase is IoPhase.WRITE else "flush"
        raise IoFailureError(f"Failed to {verb} temp file: {e}", phase, e) from e

    try:
        os.replace(temp_path, target)
        return
    except OSError as e:
        logger.warning(f"Atomic rename onto {target} failed ({e}), replacing in two steps")

    if target.exists():
        try:
            target.unlink()
        except OSError as e:
            _discard(temp_path)
            raise IoFailureError(
                f"Failed to replace existing file: {e}", IoPhase.REMOVE, e
            ) from e

    try:
        os.rename(temp_path, target)
    except OSError as e:
        logger.error(f"Temp file kept for recovery: {temp_path}")
        raise IoFailureError(
            f"Failed to move temp file into place: {e}", IoPhase.RENAME, e
        ) from e
