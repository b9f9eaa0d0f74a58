"""
Rename a file into place, waiting out transient holders of the target.
"""

import os
import threading
from pathlib import Path
from typing import Optional, Union

from core.errors import ReplaceFailed, ReplaceInterrupted
from core.logger import AuditLogger, ActionType, ActionStatus

DEFAULT_RETRIES = 5
DEFAULT_DELAY = 1.0


class AtomicReplacer:
    """
    Moves a file onto a target path.

    When the first rename fails and the target cannot be deleted (another
    process holds it open, for example), the replacer waits and tries again
    a bounded number of times before giving up.
    """

    def __init__(
        self,
        retries: int = DEFAULT_RETRIES,
        delay: float = DEFAULT_DELAY,
        cancel: Optional[threading.Event] = None,
        logger: Optional[AuditLogger] = None
    ):
        """
        Initialize AtomicReplacer.

        Args:
            retries: Maximum number of waits before the final rename
            delay: Seconds to wait between attempts
            cancel: Event that interrupts a wait when set; it is cleared
                again once the interruption has been raised
            logger: Optional audit logger
        """
        self.retries = retries
        self.delay = delay
        self.cancel = cancel if cancel is not None else threading.Event()
        self.logger = logger

    def replace(self, src: Union[str, os.PathLike], target: Union[str, os.PathLike]) -> None:
        """
        Rename ``src`` to ``target``.

        Raises:
            ReplaceInterrupted: The cancel event was set while waiting
            ReplaceFailed: The final rename attempt failed
        """
        src = Path(src)
        target = Path(target)

        if self._rename(src, target):
            self._log(src, target, ActionStatus.EXECUTED, "renamed")
            return

        attempts = 0
        while target.exists() and not self._delete(target) and attempts < self.retries:
            attempts += 1
            self._log(src, target, ActionStatus.RETRYING, f"attempt {attempts} of {self.retries}")
            if self.cancel.wait(self.delay):
                self._log(src, target, ActionStatus.FAILED, "interrupted")
                self.cancel.clear()
                raise ReplaceInterrupted("replace interrupted.", path=str(target))

        if not self._rename(src, target):
            self._log(src, target, ActionStatus.FAILED, f"gave up after {attempts} retries")
            raise ReplaceFailed(f"Unable to rename {src} to {target}", path=str(target))

        self._log(src, target, ActionStatus.EXECUTED, f"renamed after {attempts} retries")

    def _rename(self, src: Path, target: Path) -> bool:
        try:
            os.rename(src, target)
        except OSError:
            return False
        return True

    def _delete(self, target: Path) -> bool:
        try:
            if target.is_dir() and not target.is_symlink():
                target.rmdir()
            else:
                target.unlink()
        except OSError:
            return False
        return True

    def _log(self, src: Path, target: Path, status: ActionStatus, result: str) -> None:
        if self.logger is not None:
            self.logger.log_action(
                action_type=ActionType.REPLACE,
                description=f"Replace {target} with {src}",
                target=str(target),
                status=status,
                result=result
            )
