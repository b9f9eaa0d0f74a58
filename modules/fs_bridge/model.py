"""
Value types for locations, permissions and entry metadata.

These are plain snapshots: a FileStatus describes an entry as it was when
the handle looked at it and can be stale the moment it is returned.
"""

import os
import posixpath
import stat
from dataclasses import dataclass
from enum import Flag
from typing import Iterable, List, Optional, Union


class FsPath:
    """
    A normalized location inside one filesystem namespace.

    Paths are POSIX-style strings, optionally prefixed by a scheme once they
    have been qualified against a handle (``file:///tmp/a``). The empty path
    is kept as-is because destination resolution treats it specially.
    Two paths are equal when their string forms are equal.
    """

    def __init__(self, path: Union[str, "FsPath", os.PathLike] = "", scheme: Optional[str] = None):
        if isinstance(path, FsPath):
            scheme = scheme or path.scheme
            raw = path.path
        else:
            raw = os.fspath(path)
            if "://" in raw:
                parsed_scheme, raw = raw.split("://", 1)
                scheme = scheme or parsed_scheme

        raw = raw.replace("\\", "/")
        self.path = posixpath.normpath(raw) if raw else ""
        self.scheme = scheme

    @property
    def name(self) -> str:
        """Final component of the path, "" for the root."""
        return posixpath.basename(self.path)

    @property
    def parent(self) -> "FsPath":
        return FsPath(posixpath.dirname(self.path), scheme=self.scheme)

    def join(self, name: str) -> "FsPath":
        """Return the child ``name`` of this path."""
        if not self.path:
            return FsPath(name, scheme=self.scheme)
        return FsPath(posixpath.join(self.path, name), scheme=self.scheme)

    def __truediv__(self, name: str) -> "FsPath":
        return self.join(name)

    def is_absolute(self) -> bool:
        return self.path.startswith("/")

    def is_empty(self) -> bool:
        return self.path == ""

    def __str__(self) -> str:
        if self.scheme:
            return f"{self.scheme}://{self.path}"
        return self.path

    def __repr__(self) -> str:
        return f"FsPath({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FsPath):
            return str(self) == str(other)
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))


class FsAction(Flag):
    """Read, write and execute bits for one class of user."""
    NONE = 0
    EXECUTE = 1
    WRITE = 2
    READ = 4
    READ_WRITE = READ | WRITE
    READ_EXECUTE = READ | EXECUTE
    ALL = READ | WRITE | EXECUTE

    def implies(self, action: "FsAction") -> bool:
        """Return True if every bit of ``action`` is granted here."""
        return (self & action) == action

    @property
    def symbol(self) -> str:
        return "".join(
            letter if self.implies(bit) else "-"
            for letter, bit in (("r", FsAction.READ), ("w", FsAction.WRITE), ("x", FsAction.EXECUTE))
        )


@dataclass(frozen=True)
class Permission:
    """
    Owner, group and other access sets.

    Any bit not granted is denied. There is no notion of ACLs, setuid or
    sticky bits beyond these nine bits.
    """
    owner: FsAction
    group: FsAction
    other: FsAction

    @classmethod
    def from_mode(cls, mode: int) -> "Permission":
        """Build a permission from the low nine bits of a numeric mode."""
        return cls(
            owner=FsAction((mode >> 6) & 0o7),
            group=FsAction((mode >> 3) & 0o7),
            other=FsAction(mode & 0o7),
        )

    @classmethod
    def from_octal(cls, text: str) -> "Permission":
        """Parse an octal mode string such as ``"755"`` or ``"0640"``."""
        return cls.from_mode(int(text, 8))

    def to_mode(self) -> int:
        return (self.owner.value << 6) | (self.group.value << 3) | self.other.value

    def octal(self) -> str:
        """Four digit octal form, as passed to chmod."""
        return "%04o" % self.to_mode()

    def __str__(self) -> str:
        return self.owner.symbol + self.group.symbol + self.other.symbol


@dataclass(frozen=True)
class FileStatus:
    """Metadata for one entry, as returned by a handle's stat or list."""
    path: FsPath
    is_directory: bool
    permission: Permission
    length: int = 0
    modification_time: float = 0.0

    @property
    def is_file(self) -> bool:
        return not self.is_directory

    @classmethod
    def from_stat_result(cls, path: FsPath, st: os.stat_result) -> "FileStatus":
        is_dir = stat.S_ISDIR(st.st_mode)
        return cls(
            path=path,
            is_directory=is_dir,
            permission=Permission.from_mode(stat.S_IMODE(st.st_mode)),
            length=0 if is_dir else st.st_size,
            modification_time=st.st_mtime,
        )


def stat_to_paths(
    stats: Optional[Iterable[FileStatus]],
    default: Optional[FsPath] = None
) -> Optional[List[FsPath]]:
    """
    Map statuses to their paths.

    Args:
        stats: Statuses from a listing, or None if there was no listing
        default: Path to return alone when ``stats`` is None

    Returns:
        List of paths; ``[default]`` or None when there were no statuses
    """
    if stats is None:
        return [default] if default is not None else None
    return [s.path for s in stats]
