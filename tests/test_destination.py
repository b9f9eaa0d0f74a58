"""
Tests for destination resolution.
"""

import pytest

from core.errors import DestinationExists, DestinationIsDirectoryWithoutName
from modules.fs_bridge import FsPath, resolve_destination

from memory_fs import MemoryFilesystem


class TestResolveDestination:
    """Test resolve_destination against the local disk."""

    def test_missing_destination_unchanged(self, tmp_path, local_fs):
        dest = tmp_path / "new-name"
        assert resolve_destination("a", local_fs, str(dest), False) == FsPath(str(dest))

    def test_directory_receives_source_name(self, tmp_path, local_fs):
        result = resolve_destination("a", local_fs, str(tmp_path), False)
        assert result == FsPath(str(tmp_path / "a"))

    def test_collision_without_overwrite(self, tmp_path, local_fs):
        (tmp_path / "a").write_bytes(b"taken")
        with pytest.raises(DestinationExists):
            resolve_destination("a", local_fs, str(tmp_path), False)

    def test_collision_with_overwrite(self, tmp_path, local_fs):
        (tmp_path / "a").write_bytes(b"taken")
        result = resolve_destination("a", local_fs, str(tmp_path), True)
        assert result == FsPath(str(tmp_path / "a"))

    def test_existing_file_without_overwrite(self, tmp_path, local_fs):
        target = tmp_path / "out.txt"
        target.write_bytes(b"x")
        with pytest.raises(FileExistsError):
            resolve_destination("in.txt", local_fs, str(target), False)

    def test_directory_without_name(self, tmp_path, local_fs):
        with pytest.raises(DestinationIsDirectoryWithoutName):
            resolve_destination(None, local_fs, str(tmp_path), True)

    def test_nested_directory_collision(self, tmp_path, local_fs):
        """A directory named like the source inside the target is refused."""
        (tmp_path / "a").mkdir()
        with pytest.raises(DestinationIsDirectoryWithoutName):
            resolve_destination("a", local_fs, str(tmp_path), True)


class TestResolveDestinationEmptyPath:
    """The empty destination means the source name."""

    def test_empty_destination_uses_source_name(self):
        fs = MemoryFilesystem()
        assert resolve_destination("part-0", fs, "", False) == FsPath("part-0")

    def test_empty_destination_collides(self):
        fs = MemoryFilesystem()
        fs.write("part-0", b"x")
        with pytest.raises(DestinationExists):
            resolve_destination("part-0", fs, "", False)

    def test_empty_destination_without_name(self):
        fs = MemoryFilesystem()
        with pytest.raises(DestinationIsDirectoryWithoutName):
            resolve_destination(None, fs, "", False)
