"""
Tests for the recursive deleter.
"""

from core.logger import ActionType, ActionStatus
from modules.fs_bridge import TreeDeleter

from conftest import make_tree
from memory_fs import MemoryFilesystem


class _CountingFilesystem(MemoryFilesystem):
    def __init__(self):
        super().__init__()
        self.listed = []

    def list(self, path):
        self.listed.append(self.key(path))
        return super().list(path)


class TestDeleteTreeLocal:
    """Deleting trees on the local disk."""

    def test_deletes_whole_tree(self, sample_tree):
        assert TreeDeleter().delete_tree(str(sample_tree))
        assert not sample_tree.exists()

    def test_deletes_single_file(self, sample_tree):
        assert TreeDeleter().delete_tree(str(sample_tree / "a"))
        assert not (sample_tree / "a").exists()
        assert (sample_tree / "b").exists()

    def test_missing_root_reports_false(self, tmp_path):
        assert not TreeDeleter().delete_tree(str(tmp_path / "gone"))

    def test_delete_contents_keeps_root(self, sample_tree):
        assert TreeDeleter().delete_contents(str(sample_tree))
        assert sample_tree.is_dir()
        assert list(sample_tree.iterdir()) == []

    def test_delete_contents_of_missing_directory(self, tmp_path):
        assert TreeDeleter().delete_contents(str(tmp_path / "gone"))

    def test_symlinked_directory_is_not_followed(self, tmp_path):
        outside = make_tree(tmp_path / "outside", {"keep": b"precious"})
        root = make_tree(tmp_path / "root", {"file": b"x"})
        (root / "link").symlink_to(outside, target_is_directory=True)

        assert TreeDeleter().delete_tree(str(root))
        assert not root.exists()
        assert (outside / "keep").read_bytes() == b"precious"


class TestDeleteTreePartialFailure:
    """One undeletable entry does not stop the walk."""

    def _tree(self, fs):
        fs.write("/root/a", b"a")
        fs.write("/root/locked/leaf", b"leaf")
        fs.write("/root/locked/sibling", b"sibling")
        fs.write("/root/z/deep/file", b"z")
        fs.mkdirs("/root/empty")
        return fs

    def test_undeletable_leaf(self):
        fs = self._tree(MemoryFilesystem())
        fs.undeletable.add("/root/locked/leaf")

        assert not TreeDeleter(fs).delete_tree("/root")

        assert fs.files == {"/root/locked/leaf": b"leaf"}
        assert fs.exists("/root")
        assert not fs.exists("/root/empty")
        assert not fs.exists("/root/z")

    def test_empty_directory_deleted_without_walk(self):
        fs = self._tree(_CountingFilesystem())

        assert TreeDeleter(fs).delete_tree("/root")

        assert not fs.exists("/root")
        assert "/root/empty" not in fs.listed
        assert "/root/z" in fs.listed

    def test_outcome_logged(self, audit_logger):
        fs = self._tree(MemoryFilesystem())
        fs.undeletable.add("/root/a")

        TreeDeleter(fs, logger=audit_logger).delete_tree("/root")

        entries = audit_logger.get_by_action_type(ActionType.DELETE)
        assert len(entries) == 1
        assert entries[0].status == ActionStatus.FAILED.value
        assert entries[0].target == "/root"
