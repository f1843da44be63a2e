"""Tests for tree scanner module."""

import os
import sys

import pytest

from typr_workspace import tree_scanner
from typr_workspace.exceptions import InvalidPathError, IoFailureError, IoPhase
from typr_workspace.tree_scanner import is_markdown_file, scan


def _names(entries):
    return [e.name for e in entries]


class FakeEntry:
    """Directory entry whose metadata cannot be read."""

    def __init__(self, directory, name):
        self.name = name
        self.path = os.path.join(directory, name)

    def stat(self, follow_symlinks=True):
        raise PermissionError(13, "Permission denied", self.path)

    def is_dir(self, follow_symlinks=True):
        return False


class FakeScandir:
    """Context-managed iterator standing in for os.scandir."""

    def __init__(self, entries):
        self._entries = iter(entries)

    def __iter__(self):
        return self

    def __next__(self):
        return next(self._entries)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class TestIsMarkdownFile:
    """Tests for is_markdown_file function."""

    @pytest.mark.parametrize("name", ["a.md", "b.markdown", "c.mdown", "d.mkd", "E.MD", "f.Markdown"])
    def test_markdown_extensions(self, name):
        assert is_markdown_file(name) is True

    @pytest.mark.parametrize("name", ["a.txt", "README", "md", "notes.md.bak", ".md"])
    def test_other_names(self, name):
        assert is_markdown_file(name) is False

    def test_custom_extensions(self):
        assert is_markdown_file("a.txt", extensions=("txt",)) is True
        assert is_markdown_file("a.md", extensions=("txt",)) is False


class TestScan:
    """Tests for scan function."""

    def test_ordering_and_hidden_entries(self, tmp_path):
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "A").mkdir()
        (tmp_path / "a.md").write_text("a")
        (tmp_path / ".hidden").write_text("h")

        entries = scan(tmp_path, 0, 0)

        assert _names(entries) == ["A", "a.md", "b.txt"]
        a_dir, a_md, b_txt = entries
        assert a_dir.is_dir is True
        assert a_dir.is_markdown is False
        assert a_md.is_markdown is True
        assert a_md.children is None
        assert b_txt.is_markdown is False

    def test_directories_before_files_case_insensitive(self, tmp_path):
        for name in ["zeta.md", "Alpha.md", "beta.md"]:
            (tmp_path / name).write_text("")
        for name in ["zoo", "Bar", "apple"]:
            (tmp_path / name).mkdir()

        entries = scan(tmp_path, 0, 0)

        assert _names(entries) == ["apple", "Bar", "zoo", "Alpha.md", "beta.md", "zeta.md"]

    def test_hidden_directories_skipped(self, tmp_path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "config").write_text("")
        (tmp_path / "docs").mkdir()

        entries = scan(tmp_path, 0, 2)

        assert _names(entries) == ["docs"]

    def test_max_depth_zero_defers_directories(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "inner.md").write_text("")

        entries = scan(tmp_path, 0, 0)

        assert entries[0].children == []

    def test_max_depth_one_loads_immediate_children(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "inner.md").write_text("")
        (tmp_path / "sub" / "deeper").mkdir()
        (tmp_path / "sub" / "deeper" / "x.md").write_text("")

        entries = scan(tmp_path, 0, 1)

        sub = entries[0]
        assert _names(sub.children) == ["deeper", "inner.md"]
        assert sub.children[0].children == []
        assert sub.children[1].children is None

    def test_empty_directory_has_empty_children(self, tmp_path):
        (tmp_path / "empty").mkdir()

        entries = scan(tmp_path, 0, 2)

        assert entries[0].children == []

    def test_paths_are_joined_to_root(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "note.md").write_text("")

        entries = scan(tmp_path, 0, 1)

        assert entries[0].path == os.path.join(str(tmp_path), "sub")
        assert entries[0].children[0].path == os.path.join(str(tmp_path), "sub", "note.md")

    def test_ordering_is_deterministic(self, tmp_path):
        for name in ["b", "B", "a.md", "A.md", "c"]:
            (tmp_path / name).write_text("")

        first = _names(scan(tmp_path, 0, 1))
        second = _names(scan(tmp_path, 0, 1))

        assert first == second
        assert first == ["A.md", "a.md", "B", "b", "c"]

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(IoFailureError) as exc_info:
            scan(tmp_path / "missing", 0, 1)

        assert exc_info.value.phase is IoPhase.READ

    def test_file_instead_of_directory_raises(self, tmp_path):
        target = tmp_path / "file.md"
        target.write_text("")

        with pytest.raises(IoFailureError):
            scan(target, 0, 1)

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_unreadable_subdirectory_aborts_scan(self, tmp_path):
        if hasattr(os, "geteuid") and os.geteuid() == 0:
            pytest.skip("root ignores directory permissions")
        locked = tmp_path / "locked"
        locked.mkdir()
        (tmp_path / "ok.md").write_text("")
        locked.chmod(0)
        try:
            with pytest.raises(IoFailureError):
                scan(tmp_path, 0, 1)
        finally:
            locked.chmod(0o755)

    def test_custom_markdown_extensions(self, tmp_path):
        (tmp_path / "a.txt").write_text("")
        (tmp_path / "b.md").write_text("")

        entries = scan(tmp_path, 0, 0, extensions=("txt",))

        assert [e.is_markdown for e in entries] == [True, False]


class TestScanAborts:
    """Any failure discards the whole snapshot."""

    @pytest.mark.skipif(sys.platform != "linux", reason="filesystem must accept undecodable names")
    def test_undecodable_name_raises(self, tmp_path):
        (tmp_path / "good.md").write_text("")
        raw = os.path.join(os.fsencode(str(tmp_path)), b"bad\xff.md")
        with open(raw, "wb"):
            pass

        with pytest.raises(InvalidPathError):
            scan(tmp_path, 0, 1)

    def test_metadata_failure_raises(self, tmp_path, monkeypatch):
        (tmp_path / "good.md").write_text("")
        real_scandir = os.scandir
        root = str(tmp_path)

        def scandir(path):
            if str(path) == root:
                return FakeScandir([FakeEntry(root, "locked.md")])
            return real_scandir(path)

        monkeypatch.setattr(tree_scanner.os, "scandir", scandir)

        with pytest.raises(IoFailureError) as exc_info:
            scan(tmp_path, 0, 1)

        assert exc_info.value.phase is IoPhase.METADATA

    def test_nested_read_failure_aborts_whole_scan(self, tmp_path, monkeypatch):
        (tmp_path / "ok.md").write_text("")
        (tmp_path / "fine").mkdir()
        (tmp_path / "locked").mkdir()
        (tmp_path / "locked" / "secret.md").write_text("")
        real_scandir = os.scandir
        locked = str(tmp_path / "locked")

        def scandir(path):
            if str(path) == locked:
                raise PermissionError(13, "Permission denied", locked)
            return real_scandir(path)

        monkeypatch.setattr(tree_scanner.os, "scandir", scandir)

        with pytest.raises(IoFailureError) as exc_info:
            scan(tmp_path, 0, 1)

        assert exc_info.value.phase is IoPhase.READ

    def test_failure_below_max_depth_is_not_reached(self, tmp_path, monkeypatch):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "deep").mkdir()
        real_scandir = os.scandir
        deep = str(tmp_path / "sub" / "deep")

        def scandir(path):
            if str(path) == deep:
                raise PermissionError(13, "Permission denied", deep)
            return real_scandir(path)

        monkeypatch.setattr(tree_scanner.os, "scandir", scandir)

        entries = scan(tmp_path, 0, 1)

        assert entries[0].children[0].children == []
