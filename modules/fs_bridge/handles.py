"""
Filesystem handles.

A handle is the only way the copy and delete operations touch storage. Any
backend (local disk, a remote or distributed store) that implements the
FilesystemHandle protocol can be the source or destination of a copy.
"""

import os
import shutil
from pathlib import Path
from typing import BinaryIO, List, Optional, Protocol, Union, runtime_checkable

from .model import FileStatus, FsPath

PathLike = Union[FsPath, str, os.PathLike]


@runtime_checkable
class FilesystemHandle(Protocol):
    """Capabilities a storage backend must provide."""

    scheme: str

    def qualify(self, path: PathLike) -> FsPath:
        """Return the absolute, scheme-prefixed form of ``path``."""
        ...

    def exists(self, path: PathLike) -> bool:
        ...

    def is_file(self, path: PathLike) -> bool:
        ...

    def is_directory(self, path: PathLike) -> bool:
        ...

    def stat(self, path: PathLike) -> FileStatus:
        """Raises FileNotFoundError if nothing exists at ``path``."""
        ...

    def list(self, path: PathLike) -> List[FileStatus]:
        """Raises FileNotFoundError if ``path`` does not exist."""
        ...

    def open(self, path: PathLike) -> BinaryIO:
        ...

    def create(self, path: PathLike, overwrite: bool = True) -> BinaryIO:
        """Raises FileExistsError if ``path`` exists and overwrite is False."""
        ...

    def mkdirs(self, path: PathLike) -> bool:
        ...

    def delete(self, path: PathLike, recursive: bool = False) -> bool:
        """Return False when nothing was deleted instead of raising."""
        ...


def same_backend(first: FilesystemHandle, second: FilesystemHandle) -> bool:
    """Return True if both handles address the same underlying storage."""
    return first is second or first == second


class LocalFilesystem:
    """
    Handle for the local disk.

    Relative paths are resolved against ``working_dir`` (the process working
    directory when not given). All LocalFilesystem instances address the same
    disk and therefore compare equal.
    """

    scheme = "file"

    def __init__(self, working_dir: Optional[str] = None):
        self.working_dir = working_dir

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LocalFilesystem)

    def __hash__(self) -> int:
        return hash(self.scheme)

    def __repr__(self) -> str:
        return f"LocalFilesystem(working_dir={self.working_dir!r})"

    def to_local(self, path: PathLike) -> Path:
        """Map a handle path onto a pathlib.Path on this machine."""
        raw = path.path if isinstance(path, FsPath) else FsPath(path).path
        base = self.working_dir or os.getcwd()
        return Path(os.path.join(base, raw)) if raw else Path(base)

    def qualify(self, path: PathLike) -> FsPath:
        return FsPath(os.path.abspath(self.to_local(path)), scheme=self.scheme)

    def exists(self, path: PathLike) -> bool:
        return self.to_local(path).exists()

    def is_file(self, path: PathLike) -> bool:
        return self.to_local(path).is_file()

    def is_directory(self, path: PathLike) -> bool:
        return self.to_local(path).is_dir()

    def stat(self, path: PathLike) -> FileStatus:
        return FileStatus.from_stat_result(FsPath(path), self.to_local(path).stat())

    def list(self, path: PathLike) -> List[FileStatus]:
        parent = FsPath(path)
        local = self.to_local(parent)
        statuses = []
        for name in sorted(os.listdir(local)):
            child = local / name
            try:
                st = child.stat()
            except OSError:
                # Dangling symlink
                st = child.lstat()
            statuses.append(FileStatus.from_stat_result(parent.join(name), st))
        return statuses

    def open(self, path: PathLike) -> BinaryIO:
        return open(self.to_local(path), "rb")

    def create(self, path: PathLike, overwrite: bool = True) -> BinaryIO:
        local = self.to_local(path)
        local.parent.mkdir(parents=True, exist_ok=True)
        return open(local, "wb" if overwrite else "xb")

    def mkdirs(self, path: PathLike) -> bool:
        local = self.to_local(path)
        try:
            local.mkdir(parents=True, exist_ok=True)
        except (FileExistsError, NotADirectoryError):
            return False
        return local.is_dir()

    def delete(self, path: PathLike, recursive: bool = False) -> bool:
        local = self.to_local(path)
        try:
            if local.is_dir() and not local.is_symlink():
                if recursive:
                    shutil.rmtree(local)
                else:
                    local.rmdir()
            else:
                local.unlink()
        except OSError:
            return False
        return True
