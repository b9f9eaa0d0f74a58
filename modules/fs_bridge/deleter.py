"""
Recursive delete that keeps going past individual failures.
"""

from typing import Optional

from core.logger import AuditLogger, ActionType, ActionStatus

from .handles import FilesystemHandle, LocalFilesystem, PathLike
from .model import FsPath


class TreeDeleter:
    """
    Deletes directory trees entry by entry.

    A failed entry does not stop the walk; siblings are still deleted and
    the overall result reports the failure.
    """

    def __init__(
        self,
        fs: Optional[FilesystemHandle] = None,
        logger: Optional[AuditLogger] = None
    ):
        """
        Initialize TreeDeleter.

        Args:
            fs: Handle to delete on, the local disk by default
            logger: Optional audit logger
        """
        self.fs = fs if fs is not None else LocalFilesystem()
        self.logger = logger

    def delete_tree(self, root: PathLike) -> bool:
        """
        Delete ``root`` and everything beneath it.

        Returns:
            True only if every entry and ``root`` itself were removed
        """
        root = FsPath(root)
        result = self._delete_tree(root)

        if self.logger is not None:
            self.logger.log_action(
                action_type=ActionType.DELETE,
                description=f"Deleted tree: {root}",
                target=str(root),
                status=ActionStatus.EXECUTED if result else ActionStatus.FAILED,
                result="ok" if result else "some entries could not be deleted"
            )
        return result

    def delete_contents(self, root: PathLike) -> bool:
        """
        Delete everything beneath ``root`` but keep ``root``.

        A missing directory has no contents and counts as success.
        """
        root = FsPath(root)
        try:
            contents = self.fs.list(root)
        except (FileNotFoundError, NotADirectoryError):
            contents = []

        succeeded = True
        for entry in contents:
            if entry.is_file:
                if not self.fs.delete(entry.path):
                    succeeded = False
            # Empty directories go with a single call; only walk the rest
            elif not self.fs.delete(entry.path) and not self._delete_tree(entry.path):
                succeeded = False
        return succeeded

    def _delete_tree(self, root: FsPath) -> bool:
        if self.fs.is_directory(root):
            return self.delete_contents(root) and self.fs.delete(root)
        return self.fs.delete(root)
