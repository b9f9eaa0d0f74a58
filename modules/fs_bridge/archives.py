"""
Archive extraction for zip and (optionally gzipped) tar files.

Zip archives are read in-process; tar archives are handed to the system
``tar`` (piped through ``gzip -dc`` when compressed).
"""

import os
import shlex
import shutil
import zipfile
from pathlib import Path
from typing import Optional, Union

from core.errors import ExtractionFailed, MkdirsFailed, UnsafeArchiveEntry
from core.logger import AuditLogger, ActionType, ActionStatus
from core.shell import ShellBridge

ZIP_SUFFIXES = (".zip", ".jar")

PathArg = Union[str, os.PathLike]


def ensure_directory(path: Path) -> None:
    """Create ``path`` and its parents; fail unless it ends up a directory."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass
    if not path.is_dir():
        raise MkdirsFailed(f"Mkdirs failed to create {path}", path=str(path))


class ArchiveExtractor:
    """Unpacks zip and tar archives into a destination tree."""

    def __init__(
        self,
        shell: Optional[ShellBridge] = None,
        logger: Optional[AuditLogger] = None,
        buffer_size: int = 8192
    ):
        self.shell = shell if shell is not None else ShellBridge(logger=logger)
        self.logger = logger
        self.buffer_size = buffer_size

    def extract(self, archive: PathArg, dest_dir: PathArg) -> None:
        """Extract ``archive`` choosing the format from its file name."""
        if str(archive).lower().endswith(ZIP_SUFFIXES):
            self.extract_zip(archive, dest_dir)
        else:
            self.extract_tar(archive, dest_dir)

    def extract_zip(self, archive: PathArg, dest_dir: PathArg) -> None:
        """
        Extract a zip archive.

        Entries are written in archive order. Directory entries are skipped;
        the directories a file needs are created on the way.

        Args:
            archive: Zip file to read
            dest_dir: Directory to extract into

        Raises:
            MkdirsFailed: A parent directory could not be created
            UnsafeArchiveEntry: A member name points outside ``dest_dir``
        """
        dest_root = Path(dest_dir)
        resolved_root = dest_root.resolve()
        count = 0

        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue

                target = dest_root / info.filename
                if not target.resolve().is_relative_to(resolved_root):
                    raise UnsafeArchiveEntry(
                        f"Entry {info.filename} escapes {dest_root}", path=info.filename
                    )

                ensure_directory(target.parent)
                with zf.open(info) as src, open(target, "wb") as out:
                    shutil.copyfileobj(src, out, self.buffer_size)
                count += 1

        self._log(archive, dest_root, f"{count} files")

    def extract_tar(self, archive: PathArg, dest_dir: PathArg) -> None:
        """
        Extract a tar archive with the system tar.

        A name ending in ``gz`` is decompressed with ``gzip -dc`` first.

        Raises:
            MkdirsFailed: ``dest_dir`` could not be created
            ExtractionFailed: The tar pipeline exited non-zero
        """
        dest_root = Path(dest_dir)
        ensure_directory(dest_root)

        archive_path = os.path.abspath(archive)
        if archive_path.endswith("gz"):
            result = self.shell.run_script(
                f"set -o pipefail; gzip -dc {shlex.quote(archive_path)} | tar -xf -",
                cwd=str(dest_root),
                check=False,
            )
        else:
            result = self.shell.run(["tar", "-xf", archive_path], cwd=str(dest_root), check=False)

        if not result.succeeded:
            if self.logger is not None:
                self.logger.log_action(
                    action_type=ActionType.EXTRACT,
                    description=f"Extract {archive} into {dest_root}",
                    target=str(dest_root),
                    status=ActionStatus.FAILED,
                    result=result.stderr_text
                )
            raise ExtractionFailed(
                f"Error untarring file {archive}. Tar process exited with exit code "
                f"{result.exit_code}",
                path=str(archive),
                exit_code=result.exit_code,
            )

        self._log(archive, dest_root, "ok")

    def _log(self, archive: PathArg, dest_root: Path, result: str) -> None:
        if self.logger is not None:
            self.logger.log_action(
                action_type=ActionType.EXTRACT,
                description=f"Extract {archive} into {dest_root}",
                target=str(dest_root),
                result=result
            )
