"""
Destination resolution for copies.

Decides whether a copy lands inside an existing directory, replaces a named
file, or is refused.
"""

from typing import Optional

from core.errors import DestinationExists, DestinationIsDirectoryWithoutName

from .handles import FilesystemHandle, PathLike
from .model import FsPath


def resolve_destination(
    source_name: Optional[str],
    dest_fs: FilesystemHandle,
    dest: PathLike,
    overwrite: bool
) -> FsPath:
    """
    Compute the final target path of a copy.

    An existing directory receives the source name appended and is resolved
    again without a name, so ``copy a -> dir`` writes ``dir/a`` and
    ``copy a -> dir`` where ``dir/a`` is itself a directory is refused. An
    empty destination means the source name relative to the handle's
    working location.

    Args:
        source_name: Base name of the source, or None
        dest_fs: Handle of the destination backend
        dest: Requested destination path
        overwrite: Whether an existing regular file may be replaced

    Returns:
        The path the copy should write to

    Raises:
        DestinationIsDirectoryWithoutName: Destination is a directory and
            there is no name to append
        DestinationExists: Destination is a file and overwrite is False
    """
    dest = FsPath(dest)

    if dest_fs.exists(dest):
        if dest_fs.stat(dest).is_directory:
            if source_name is None:
                raise DestinationIsDirectoryWithoutName(
                    f"Target {dest} is a directory", path=str(dest)
                )
            return resolve_destination(None, dest_fs, dest.join(source_name), overwrite)
        if not overwrite:
            raise DestinationExists(f"Target {dest} already exists", path=str(dest))
    elif dest.is_empty():
        # The empty path is the handle's working directory
        if source_name is None:
            raise DestinationIsDirectoryWithoutName("Target is the working directory", path="")
        return resolve_destination(None, dest_fs, FsPath(source_name), overwrite)

    return dest
