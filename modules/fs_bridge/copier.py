"""
Recursive tree copy between two filesystem handles.

Source and destination may be the same backend or different ones (local to
remote, remote to local, remote to remote). Each file is streamed on the
calling thread: open, copy, close.
"""

import shutil
from typing import BinaryIO, List, Optional, Sequence, Union

from core.errors import (
    DestinationMissing,
    DestinationNotDirectory,
    MultipleCopyFailed,
    SelfCopy,
    SourceMissing,
)
from core.logger import AuditLogger, ActionType, ActionStatus

from .destination import resolve_destination
from .handles import FilesystemHandle, PathLike, same_backend
from .model import FsPath

DEFAULT_BUFFER_SIZE = 4096


def close_quietly(stream: Optional[BinaryIO]) -> None:
    """Close ``stream`` while an error is already propagating."""
    if stream is None:
        return
    try:
        stream.close()
    except Exception:
        # The error being unwound takes precedence
        pass


class TreeCopier:
    """Copies files and directory trees between filesystem handles."""

    def __init__(
        self,
        logger: Optional[AuditLogger] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE
    ):
        """
        Initialize TreeCopier.

        Args:
            logger: Optional audit logger
            buffer_size: Chunk size used when streaming file contents
        """
        self.logger = logger
        self.buffer_size = buffer_size

    def _log(self, action_type: ActionType, description: str, target: str,
             status: ActionStatus, result: Optional[str] = None) -> None:
        if self.logger is not None:
            self.logger.log_action(
                action_type=action_type,
                description=description,
                target=target,
                status=status,
                result=result
            )

    def copy(
        self,
        src_fs: FilesystemHandle,
        src: PathLike,
        dst_fs: FilesystemHandle,
        dst: PathLike,
        delete_source: bool = False,
        overwrite: bool = True
    ) -> bool:
        """
        Copy a file or directory tree.

        Args:
            src_fs: Handle the source lives on
            src: Source file or directory
            dst_fs: Handle to copy onto
            dst: Destination; an existing directory receives the source inside it
            delete_source: Delete the source once the copy finished
            overwrite: Replace existing destination files

        Returns:
            True on success. With delete_source, the result of deleting the
            source, so a failed post-copy delete is reported as False. False
            also when a destination directory could not be created.

        Raises:
            DestinationExists: A destination file exists and overwrite is False
            SelfCopy: The destination is the source or lies beneath it
            SourceMissing: The source is neither a file nor a directory
        """
        action = ActionType.MOVE if delete_source else ActionType.COPY
        description = f"{'Move' if delete_source else 'Copy'} {src} to {dst}"
        try:
            result = self._copy(src_fs, FsPath(src), dst_fs, FsPath(dst), delete_source, overwrite)
        except Exception as e:
            self._log(action, description, str(dst), ActionStatus.FAILED, f"Error: {e}")
            raise

        self._log(action, description, str(dst),
                  ActionStatus.EXECUTED if result else ActionStatus.FAILED,
                  "ok" if result else "incomplete")
        return result

    def move(
        self,
        src_fs: FilesystemHandle,
        src: PathLike,
        dst_fs: FilesystemHandle,
        dst: PathLike,
        overwrite: bool = True
    ) -> bool:
        """Copy then delete the source. Returns the delete's result."""
        return self.copy(src_fs, src, dst_fs, dst, delete_source=True, overwrite=overwrite)

    def _copy(
        self,
        src_fs: FilesystemHandle,
        src: FsPath,
        dst_fs: FilesystemHandle,
        dst: FsPath,
        delete_source: bool,
        overwrite: bool
    ) -> bool:
        dst = resolve_destination(src.name, dst_fs, dst, overwrite)
        self._check_dependencies(src_fs, src, dst_fs, dst)

        if src_fs.is_directory(src):
            if not dst_fs.mkdirs(dst):
                return False
            for entry in src_fs.list(src):
                # Child results are not aggregated; a failing child raises
                self._copy(src_fs, entry.path, dst_fs, dst.join(entry.path.name),
                           delete_source, overwrite)
        elif src_fs.is_file(src):
            self._copy_file(src_fs, src, dst_fs, dst, overwrite)
        else:
            raise SourceMissing(f"{src}: No such file or directory", path=str(src))

        if delete_source:
            return src_fs.delete(src, True)
        return True

    def _copy_file(
        self,
        src_fs: FilesystemHandle,
        src: FsPath,
        dst_fs: FilesystemHandle,
        dst: FsPath,
        overwrite: bool
    ) -> None:
        in_stream = None
        out_stream = None
        try:
            in_stream = src_fs.open(src)
            out_stream = dst_fs.create(dst, overwrite)
            shutil.copyfileobj(in_stream, out_stream, self.buffer_size)
        except BaseException:
            close_quietly(out_stream)
            close_quietly(in_stream)
            raise

        try:
            out_stream.close()
        finally:
            in_stream.close()

    @staticmethod
    def _check_dependencies(
        src_fs: FilesystemHandle,
        src: FsPath,
        dst_fs: FilesystemHandle,
        dst: FsPath
    ) -> None:
        """Refuse to copy a path onto itself or into its own subtree."""
        if not same_backend(src_fs, dst_fs):
            return

        src_q = str(src_fs.qualify(src)).rstrip("/") + "/"
        dst_q = str(dst_fs.qualify(dst)).rstrip("/") + "/"
        if dst_q.startswith(src_q):
            if len(src_q) == len(dst_q):
                raise SelfCopy(f"Cannot copy {src} to itself.", path=str(src))
            raise SelfCopy(f"Cannot copy {src} to its subdirectory {dst}", path=str(dst))

    def copy_all(
        self,
        src_fs: FilesystemHandle,
        sources: Sequence[PathLike],
        dst_fs: FilesystemHandle,
        dst: PathLike,
        delete_source: bool = False,
        overwrite: bool = True
    ) -> bool:
        """
        Copy several sources into one existing directory.

        Every source is attempted even when an earlier one fails. Failures
        are collected and raised together once all sources were tried.

        Returns:
            True if every individual copy returned True

        Raises:
            DestinationMissing: ``dst`` does not exist
            DestinationNotDirectory: ``dst`` is not a directory
            MultipleCopyFailed: One or more sources raised
        """
        sources = list(sources)
        if len(sources) == 1:
            return self.copy(src_fs, sources[0], dst_fs, dst, delete_source, overwrite)

        dst = FsPath(dst)
        if not dst_fs.exists(dst):
            raise DestinationMissing(
                f"`{dst}': specified destination directory does not exist", path=str(dst)
            )
        if not dst_fs.stat(dst).is_directory:
            raise DestinationNotDirectory(
                f"copying multiple files, but last argument `{dst}' is not a directory",
                path=str(dst)
            )

        errors: List[Exception] = []
        result = True
        for src in sources:
            try:
                if not self.copy(src_fs, src, dst_fs, dst, delete_source, overwrite):
                    result = False
            except OSError as e:
                errors.append(e)

        if errors:
            raise MultipleCopyFailed(errors)
        return result

    def copy_merge(
        self,
        src_fs: FilesystemHandle,
        src_dir: PathLike,
        dst_fs: FilesystemHandle,
        dst_file: PathLike,
        delete_source: bool = False,
        separator: Optional[Union[bytes, str]] = None
    ) -> bool:
        """
        Concatenate the files of a directory into a single destination file.

        Files are written in listing order; subdirectories are skipped. When
        a separator is given it is written after every file.

        Args:
            src_fs: Handle the source directory lives on
            src_dir: Directory whose files are merged
            dst_fs: Handle to write onto
            dst_file: Output file; must not exist yet
            delete_source: Delete ``src_dir`` afterwards
            separator: Bytes (or UTF-8 text) appended after each file

        Returns:
            False if ``src_dir`` is not a directory, otherwise True, or the
            result of deleting the source when delete_source is set
        """
        src_dir = FsPath(src_dir)
        dst_file = resolve_destination(src_dir.name, dst_fs, dst_file, False)
        if not src_fs.is_directory(src_dir):
            return False

        if isinstance(separator, str):
            separator = separator.encode("utf-8")

        description = f"Merge {src_dir} into {dst_file}"
        out_stream = dst_fs.create(dst_file, True)
        try:
            for entry in src_fs.list(src_dir):
                if entry.is_directory:
                    continue
                with src_fs.open(entry.path) as in_stream:
                    shutil.copyfileobj(in_stream, out_stream, self.buffer_size)
                if separator is not None:
                    out_stream.write(separator)
        except BaseException as e:
            close_quietly(out_stream)
            self._log(ActionType.MERGE, description, str(dst_file), ActionStatus.FAILED, f"Error: {e}")
            raise
        out_stream.close()

        self._log(ActionType.MERGE, description, str(dst_file), ActionStatus.EXECUTED)
        if delete_source:
            return src_fs.delete(src_dir, True)
        return True
