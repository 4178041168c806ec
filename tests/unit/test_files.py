"""
Unit tests for FileStore.
"""

import errno
import logging
from pathlib import Path

import pytest

from minihttpd.handlers.files import FileStore, PathTraversalError


class TestFileStore:
    """Tests for FileStore class."""

    def test_write_then_read(self, tmp_path: Path):
        store = FileStore(tmp_path)

        assert store.write("notes.txt", b"hi") == 2
        assert store.read("notes.txt") == b"hi"

    def test_root_as_string(self, tmp_path: Path):
        store = FileStore(str(tmp_path) + "/")
        store.write("a", b"x")
        assert (tmp_path / "a").read_bytes() == b"x"

    def test_read_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            FileStore(tmp_path).read("missing.txt")

    def test_write_into_missing_root(self, tmp_path: Path):
        store = FileStore(tmp_path / "does-not-exist")
        with pytest.raises(OSError):
            store.write("a", b"x")

    def test_nested_name_inside_root(self, tmp_path: Path):
        (tmp_path / "sub").mkdir()
        store = FileStore(tmp_path)

        store.write("sub/file", b"nested")

        assert store.resolve("sub/../sub/file") == (tmp_path / "sub" / "file").resolve()
        assert store.read("sub/file") == b"nested"

    @pytest.mark.parametrize("name", ["../escape", "sub/../../escape", "/etc/passwd"])
    def test_traversal_rejected(self, tmp_path: Path, name: str):
        store = FileStore(tmp_path / "root")

        with pytest.raises(PathTraversalError):
            store.resolve(name)

    def test_traversal_is_permission_error(self):
        assert issubclass(PathTraversalError, PermissionError)

    def test_nul_byte_in_name_rejected(self, tmp_path: Path):
        store = FileStore(tmp_path)

        with pytest.raises(OSError) as excinfo:
            store.resolve("a\x00b")

        assert excinfo.value.errno == errno.EINVAL
        assert not isinstance(excinfo.value, PathTraversalError)

    def test_symlink_escape_rejected(self, tmp_path: Path):
        root = tmp_path / "root"
        root.mkdir()
        (tmp_path / "outside").write_bytes(b"secret")
        (root / "link").symlink_to(tmp_path / "outside")

        with pytest.raises(PathTraversalError):
            FileStore(root).read("link")

    def test_traversal_logged(self, tmp_path: Path, caplog):
        with caplog.at_level(logging.WARNING, logger="minihttpd.handlers.files"):
            with pytest.raises(PathTraversalError):
                FileStore(tmp_path).write("../x", b"")

        assert "Path traversal attempt" in caplog.text
