"""Tests for config module."""

import pytest
from pathlib import Path

from typr_workspace.config import WorkspaceConfig


class TestWorkspaceConfig:
    """Tests for WorkspaceConfig class."""

    def test_default_values(self):
        config = WorkspaceConfig()
        assert config.poll_interval_ms == 400
        assert config.open_folder_depth == 2
        assert config.expand_depth == 1
        assert config.markdown_extensions == ("md", "markdown", "mdown", "mkd")
        assert config.open_file_extensions == ("md", "markdown", "txt")
        assert config.temp_marker == "kea"
        assert config.default_save_name == "Untitled.md"
        assert config.host == "127.0.0.1"
        assert config.port == 8765

    def test_custom_values(self):
        config = WorkspaceConfig(poll_interval_ms=50, open_folder_depth=3, port=9000)
        assert config.poll_interval_ms == 50
        assert config.open_folder_depth == 3
        assert config.port == 9000

    def test_poll_interval_in_seconds(self):
        assert WorkspaceConfig(poll_interval_ms=250).poll_interval == 0.25

    def test_extensions_normalized(self):
        config = WorkspaceConfig(markdown_extensions=(".MD", "Markdown"))
        assert config.markdown_extensions == ("md", "markdown")

    @pytest.mark.parametrize("kwargs", [
        {"poll_interval_ms": 0},
        {"poll_interval_ms": -5},
        {"open_folder_depth": -1},
        {"expand_depth": -1},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            WorkspaceConfig(**kwargs)

    def test_is_markdown(self):
        config = WorkspaceConfig()
        assert config.is_markdown(Path("/docs/readme.MD")) is True
        assert config.is_markdown("notes.mkd") is True
        assert config.is_markdown("notes.txt") is False


class TestFromEnv:
    """Tests for WorkspaceConfig.from_env."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TYPR_POLL_INTERVAL_MS", "100")
        monkeypatch.setenv("TYPR_OPEN_FOLDER_DEPTH", "4")
        monkeypatch.setenv("TYPR_EXPAND_DEPTH", "2")
        monkeypatch.setenv("TYPR_HOST", "0.0.0.0")
        monkeypatch.setenv("TYPR_PORT", "9999")

        config = WorkspaceConfig.from_env()

        assert config.poll_interval_ms == 100
        assert config.open_folder_depth == 4
        assert config.expand_depth == 2
        assert config.host == "0.0.0.0"
        assert config.port == 9999

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("TYPR_PORT", "9999")

        config = WorkspaceConfig.from_env(port=7000)

        assert config.port == 7000

    def test_none_overrides_ignored(self, monkeypatch):
        monkeypatch.setenv("TYPR_POLL_INTERVAL_MS", "120")

        config = WorkspaceConfig.from_env(poll_interval_ms=None, host=None)

        assert config.poll_interval_ms == 120
        assert config.host == "127.0.0.1"

    def test_defaults_without_environment(self, monkeypatch):
        for name in ["TYPR_POLL_INTERVAL_MS", "TYPR_OPEN_FOLDER_DEPTH",
                     "TYPR_EXPAND_DEPTH", "TYPR_HOST", "TYPR_PORT"]:
            monkeypatch.delenv(name, raising=False)

        assert WorkspaceConfig.from_env() == WorkspaceConfig()
