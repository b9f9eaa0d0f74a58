"""
Helpers that only make sense on the local disk.
"""

import atexit
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from core.logger import AuditLogger, ActionType, ActionStatus
from core.shell import ShellBridge

PathArg = Union[str, os.PathLike]


def disk_usage(path: PathArg) -> int:
    """
    Return the number of bytes used by files under ``path``.

    Symbolic links inside a directory are not followed or counted.
    A missing path uses nothing.
    """
    path = Path(path)
    if not path.exists():
        return 0
    if not path.is_dir():
        return path.stat().st_size

    size = 0
    try:
        children = list(path.iterdir())
    except OSError:
        return 0
    for child in children:
        if not child.is_symlink():
            size += disk_usage(child)
    return size


def list_files(directory: PathArg) -> List[Path]:
    """
    List the entries of a directory.

    Raises:
        FileNotFoundError: If ``directory`` does not exist
        NotADirectoryError: If ``directory`` is not a directory
    """
    return sorted(Path(directory).iterdir())


def list_names(directory: PathArg) -> List[str]:
    """Like list_files, but only the entry names."""
    return sorted(os.listdir(directory))


def create_local_temp_file(basefile: PathArg, prefix: str, delete_on_exit: bool = False) -> Path:
    """
    Create an empty temporary file next to ``basefile``.

    The name starts with ``prefix`` followed by the base file's name.
    """
    basefile = Path(basefile)
    fd, name = tempfile.mkstemp(prefix=prefix + basefile.name, dir=basefile.parent)
    os.close(fd)
    tmp = Path(name)
    if delete_on_exit:
        atexit.register(_remove_quietly, tmp)
    return tmp


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def sym_link(
    target: str,
    linkname: str,
    shell: Optional[ShellBridge] = None,
    logger: Optional[AuditLogger] = None
) -> int:
    """
    Create a symbolic link with ``ln -s``.

    A failure is logged with the command's stderr rather than raised.

    Returns:
        Exit code of ln
    """
    shell = shell if shell is not None else ShellBridge()
    result = shell.run(["ln", "-s", target, linkname], check=False)

    if logger is not None:
        logger.log_action(
            action_type=ActionType.LINK,
            description=f"Link {linkname} -> {target}",
            target=linkname,
            status=ActionStatus.EXECUTED if result.succeeded else ActionStatus.FAILED,
            result=f"exit {result.exit_code}" if result.succeeded
            else f"failed {result.exit_code} with: {result.stderr_text}"
        )
    return result.exit_code
