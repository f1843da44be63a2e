"""Configuration for the workspace package."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple, Union

from .tree_scanner import is_markdown_file


@dataclass
class WorkspaceConfig:
    """
    Configuration options for the workspace service.

    Attributes:
        poll_interval_ms: Interval between two watch ticks for one path
        open_folder_depth: Levels scanned eagerly when a folder is opened
        expand_depth: Levels scanned when a single directory is expanded
        markdown_extensions: Lowercase extensions classified as markdown
        open_file_extensions: Extensions offered by the open-file picker
        temp_marker: Reserved marker embedded in temporary save file names
        default_save_name: File name suggested by the save-as picker
        lock_timeout_seconds: Maximum wait for the watch registry lock
        subscriber_queue_size: Buffered events per event stream subscriber
        picker_timeout_seconds: Maximum time a native picker may stay open
        host: Bind host of the HTTP service
        port: Bind port of the HTTP service
    """
    poll_interval_ms: int = 400
    open_folder_depth: int = 2
    expand_depth: int = 1
    markdown_extensions: Tuple[str, ...] = field(
        default_factory=lambda: ("md", "markdown", "mdown", "mkd")
    )
    open_file_extensions: Tuple[str, ...] = field(
        default_factory=lambda: ("md", "markdown", "txt")
    )
    temp_marker: str = "kea"
    default_save_name: str = "Untitled.md"
    lock_timeout_seconds: float = 5.0
    subscriber_queue_size: int = 1000
    picker_timeout_seconds: float = 120.0
    host: str = "127.0.0.1"
    port: int = 8765

    def __post_init__(self):
        if self.poll_interval_ms <= 0:
            raise ValueError(f"poll_interval_ms must be positive: {self.poll_interval_ms}")
        if self.open_folder_depth < 0 or self.expand_depth < 0:
            raise ValueError("scan depths must not be negative")
        self.markdown_extensions = tuple(ext.lower().lstrip(".") for ext in self.markdown_extensions)
        self.open_file_extensions = tuple(ext.lower().lstrip(".") for ext in self.open_file_extensions)

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

    def is_markdown(self, path: Union[str, Path]) -> bool:
        """
        Check if a file name carries a markdown extension.

        Args:
            path: File path or name to check

        Returns:
            True if the lowercase extension is a markdown extension
        """
        return is_markdown_file(path, self.markdown_extensions)

    @classmethod
    def from_env(cls, **overrides) -> "WorkspaceConfig":
        """
        Build a configuration from ``TYPR_*`` environment variables.

        Explicit keyword overrides win over the environment.
        """
        values = {}
        env_map = {
            "TYPR_POLL_INTERVAL_MS": ("poll_interval_ms", int),
            "TYPR_OPEN_FOLDER_DEPTH": ("open_folder_depth", int),
            "TYPR_EXPAND_DEPTH": ("expand_depth", int),
            "TYPR_HOST": ("host", str),
            "TYPR_PORT": ("port", int),
        }
        for env_name, (attr, convert) in env_map.items():
            raw = os.environ.get(env_name)
            if raw:
                values[attr] = convert(raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
