"""Data models for the workspace package."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import time


class ChangeKind(Enum):
    """Kinds of external change reported for a watched file."""
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class FileEntry:
    """
    One node of a directory snapshot.

    Attributes:
        name: Final path component, without separators
        path: Absolute path, unique within a snapshot
        is_dir: Whether this entry is a directory
        is_markdown: Whether the file carries a markdown extension
        children: None when not expanded (always None for files), an empty
            list when expandable but not loaded yet, else the loaded children
    """
    name: str
    path: str
    is_dir: bool
    is_markdown: bool = False
    children: Optional[List["FileEntry"]] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "path": self.path,
            "is_dir": self.is_dir,
            "is_markdown": self.is_markdown,
            "children": (
                [child.to_dict() for child in self.children]
                if self.children is not None
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FileEntry":
        """Create from dictionary."""
        children = data.get("children")
        return cls(
            name=data["name"],
            path=data["path"],
            is_dir=data.get("is_dir", False),
            is_markdown=data.get("is_markdown", False),
            children=[cls.from_dict(c) for c in children] if children is not None else None,
        )


@dataclass(frozen=True)
class FolderSnapshot:
    """Point-in-time listing of an opened folder."""
    path: str
    name: str
    entries: List[FileEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "name": self.name,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FolderSnapshot":
        """Create from dictionary."""
        return cls(
            path=data["path"],
            name=data["name"],
            entries=[FileEntry.from_dict(e) for e in data.get("entries", [])],
        )


@dataclass(frozen=True)
class FileData:
    """A file's path, name and full text content."""
    path: str
    content: str
    name: str

    def to_dict(self) -> dict:
        return {"path": self.path, "content": self.content, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "FileData":
        return cls(path=data["path"], content=data["content"], name=data["name"])


@dataclass(frozen=True)
class SaveResult:
    """Where a save-as landed."""
    path: str
    name: str

    def to_dict(self) -> dict:
        return {"path": self.path, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "SaveResult":
        return cls(path=data["path"], name=data["name"])


@dataclass(frozen=True)
class ChangeEvent:
    """
    External change detected on a watched path.

    Attributes:
        path: The watched path, exactly as it was registered
        kind: MODIFIED or REMOVED
        timestamp: Unix timestamp of the poll tick that detected it
    """
    path: str
    kind: ChangeKind
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "path": self.path,
            "kind": self.kind.value,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChangeEvent":
        """Create from dictionary."""
        return cls(
            path=data["path"],
            kind=ChangeKind(data["kind"]),
            timestamp=data.get("timestamp", time.time()),
        )
