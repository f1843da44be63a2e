"""Depth-bounded directory snapshots for the file browser."""

import os
from pathlib import Path
from typing import Iterable, List, Union

from .exceptions import InvalidPathError, IoFailureError, IoPhase
from .models import FileEntry

MARKDOWN_EXTENSIONS = ("md", "markdown", "mdown", "mkd")
HIDDEN_PREFIX = "."


def is_markdown_file(path: Union[str, Path], extensions: Iterable[str] = MARKDOWN_EXTENSIONS) -> bool:
    """Return True when the lowercase extension of ``path`` is a markdown one."""
    suffix = Path(path).suffix
    if not suffix:
        return False
    return suffix[1:].lower() in tuple(extensions)


def sort_key(entry: FileEntry):
    """Directories first, then case-insensitive name; raw name breaks ties."""
    return (not entry.is_dir, entry.name.lower(), entry.name)


def _ensure_representable(value: str) -> str:
    # os.fsdecode maps undecodable bytes to lone surrogates
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidPathError(f"Invalid path encoding: {value!r}") from None
    return value


def scan(
    path: Union[str, Path],
    depth: int = 0,
    max_depth: int = 1,
    extensions: Iterable[str] = MARKDOWN_EXTENSIONS,
) -> List[FileEntry]:
    """
    List the visible children of a directory, recursing up to ``max_depth``.

    Hidden entries (leading dot) are skipped. Directories below
    ``max_depth`` get their children loaded; deeper directories get an empty
    children list, marking them as expandable on demand. Files carry None.

    Args:
        path: Directory to scan
        depth: Depth of ``path`` itself, 0 for the scan root
        max_depth: Deepest level whose directories are still expanded
        extensions: Lowercase markdown extensions

    Returns:
        Entries sorted directories first, then case-insensitively by name

    Raises:
        IoFailureError: If a directory or an entry's metadata cannot be read
        InvalidPathError: If a name is not representable as UTF-8
    """
    extensions = tuple(extensions)
    entries: List[FileEntry] = []

    try:
        iterator = os.scandir(path)
    except OSError as e:
        raise IoFailureError(f"Failed to read directory: {e}", IoPhase.READ, e) from e

    with iterator:
        while True:
            try:
                child = next(iterator)
            except StopIteration:
                break
            except OSError as e:
                raise IoFailureError(f"Failed to read entry: {e}", IoPhase.READ, e) from e

            name = child.name
            if name.startswith(HIDDEN_PREFIX):
                continue

            _ensure_representable(name)
            child_path = _ensure_representable(child.path)

            try:
                child.stat(follow_symlinks=False)
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError as e:
                raise IoFailureError(
                    f"Failed to read metadata: {e}", IoPhase.METADATA, e
                ) from e

            if is_dir and depth < max_depth:
                children = scan(child_path, depth + 1, max_depth, extensions)
            elif is_dir:
                children = []
            else:
                children = None

            entries.append(FileEntry(
                name=name,
                path=child_path,
                is_dir=is_dir,
                is_markdown=False if is_dir else is_markdown_file(name, extensions),
                children=children,
            ))

    entries.sort(key=sort_key)
    return entries
